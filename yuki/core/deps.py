from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional

from yuki.core.database import get_db
from yuki.core.exceptions import ProviderError
from yuki.services.document_service import DocumentStorage
from yuki.services.providers import ModelGateway, get_gateway
from yuki.services.settings_service import SettingsService


def provider_error_status(error: ProviderError) -> int:
    """HTTP status for a failed model call"""
    if error.kind == "auth":
        return status.HTTP_401_UNAUTHORIZED
    if error.kind == "rate_limit":
        return status.HTTP_429_TOO_MANY_REQUESTS
    return status.HTTP_502_BAD_GATEWAY


def get_model_gateway(db: Session = Depends(get_db)) -> ModelGateway:
    """Gateway for the active provider. Endpoints that cannot work without a model depend on this."""
    try:
        return get_gateway(SettingsService.require_provider_config(db))
    except ProviderError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message,
        )


def get_optional_model_gateway(db: Session = Depends(get_db)) -> Optional[ModelGateway]:
    config = SettingsService.get_provider_config(db)
    if config is None:
        return None
    try:
        return get_gateway(config)
    except ProviderError:
        return None


def get_storage() -> DocumentStorage:
    return DocumentStorage()
