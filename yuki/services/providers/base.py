"""
Provider gateway contract.

A gateway sends one prompt, optionally with images, to the configured
language model and returns the raw response text. It has no business logic
and no retry policy; every failure is raised as ProviderError with a kind
callers can branch on.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from yuki.core.exceptions import ProviderError
from yuki.schemas.settings import ProviderConfig
from yuki.services.prompts import CONNECTION_TEST_PROMPT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageInput:
    data: bytes
    media_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.standard_b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.to_base64()}"


def error_kind_for_status(status_code: int) -> str:
    if status_code in (401, 403):
        return "auth"
    if status_code == 429:
        return "rate_limit"
    return "network"


class ModelGateway(ABC):
    name: str = "base"

    def __init__(self, config: ProviderConfig):
        if config.requires_key and not config.api_key:
            raise ProviderError(f"An API key is required for provider '{config.provider}'", kind="auth")
        self.config = config

    def resolve_model(self, model: Optional[str], images: Optional[Sequence[ImageInput]]) -> str:
        if model:
            return model
        if images:
            return self.config.vision_model or self.config.model
        return self.config.model

    def complete(
        self,
        prompt: str,
        images: Optional[Sequence[ImageInput]] = None,
        *,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str:
        """Send a prompt and return the response text."""
        model_id = self.resolve_model(model, images)
        logger.info(f"Calling {self.name} model {model_id} (prompt: {len(prompt)} chars, images: {len(images or [])})")
        text = self._complete(prompt, list(images or []), system_prompt, model_id)
        if text is None or not str(text).strip():
            raise ProviderError(f"{self.name} returned an empty response", kind="malformed_response")
        return str(text).strip()

    @abstractmethod
    def _complete(self, prompt: str, images: list, system_prompt: Optional[str], model: str) -> str:
        raise NotImplementedError

    def test_connection(self) -> bool:
        try:
            self.complete(CONNECTION_TEST_PROMPT)
            return True
        except ProviderError as e:
            logger.warning(f"Connection test against {self.name} failed: {e}")
            return False
