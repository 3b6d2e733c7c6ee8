import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from yuki.core.config import settings
from yuki.core.exceptions import ProviderError
from yuki.models.app_setting import AppSetting
from yuki.schemas.settings import AppSettingsResponse, AppSettingsUpdate, ProviderConfig
from yuki.services.currency_service import CurrencyService
from yuki.services.ledger_service import write_transaction

logger = logging.getLogger(__name__)

PROVIDER_KEY = "provider"
THEME_KEY = "theme"


class SettingsService:

    @staticmethod
    def _get_value(db: Session, key: str):
        row = db.get(AppSetting, key)
        return row.value if row else None

    @staticmethod
    def _set_value(db: Session, key: str, value) -> None:
        row = db.get(AppSetting, key)
        if row is None:
            db.add(AppSetting(key=key, value=value))
        else:
            row.value = value

    @staticmethod
    def env_provider_config() -> Optional[ProviderConfig]:
        if not settings.LLM_MODEL:
            return None
        return ProviderConfig(
            provider=settings.LLM_PROVIDER,
            endpoint=settings.LLM_ENDPOINT,
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            vision_model=settings.LLM_VISION_MODEL,
            timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
        )

    @staticmethod
    def get_provider_config(db: Session) -> Optional[ProviderConfig]:
        """Saved provider configuration, falling back to the LLM_* environment keys."""
        stored = SettingsService._get_value(db, PROVIDER_KEY)
        if stored:
            try:
                return ProviderConfig.model_validate(stored)
            except PydanticValidationError as e:
                logger.warning(f"Ignoring invalid stored provider config: {e}")
        return SettingsService.env_provider_config()

    @staticmethod
    def require_provider_config(db: Session) -> ProviderConfig:
        config = SettingsService.get_provider_config(db)
        if config is None:
            raise ProviderError("No language model provider is configured", kind="auth")
        return config

    @staticmethod
    def get_settings(db: Session) -> AppSettingsResponse:
        config = SettingsService.get_provider_config(db)
        if config is not None and config.api_key:
            # Never echo the key back
            config = config.model_copy(update={"api_key": "********"})
        return AppSettingsResponse(
            provider=config,
            default_currency=CurrencyService.get_primary(db).code,
            theme=SettingsService._get_value(db, THEME_KEY) or "system",
        )

    @staticmethod
    def save_settings(db: Session, update: AppSettingsUpdate) -> AppSettingsResponse:
        with write_transaction(db):
            if update.provider is not None:
                provider = update.provider
                if provider.api_key == "********":
                    # Masked key sent back unchanged
                    current = SettingsService.get_provider_config(db)
                    provider = provider.model_copy(update={"api_key": current.api_key if current else None})
                SettingsService._set_value(db, PROVIDER_KEY, provider.model_dump())
            if update.theme is not None:
                SettingsService._set_value(db, THEME_KEY, update.theme)
        return SettingsService.get_settings(db)
