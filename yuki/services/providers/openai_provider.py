import logging
from typing import Optional

import openai

from yuki.core.exceptions import ProviderError
from yuki.schemas.settings import ProviderConfig
from yuki.services.providers.base import ModelGateway

logger = logging.getLogger(__name__)


class OpenAICompatibleGateway(ModelGateway):
    """OpenAI chat completions, also spoken by OpenRouter and LM Studio."""
    name = "openai"

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.name = config.provider
        self.client = openai.OpenAI(
            # LM Studio accepts any key
            api_key=config.api_key or "not-needed",
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    def _complete(self, prompt: str, images: list, system_prompt: Optional[str], model: str) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        if images:
            content = [{"type": "text", "text": prompt}]
            for image in images:
                content.append({"type": "image_url", "image_url": {"url": image.to_data_url()}})
            messages.append({"role": "user", "content": content})
        else:
            messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=0.1,
            )
        except openai.AuthenticationError as e:
            raise ProviderError("Provider rejected the API key", kind="auth", details=str(e))
        except openai.PermissionDeniedError as e:
            raise ProviderError("Provider denied access to the model", kind="auth", details=str(e))
        except openai.RateLimitError as e:
            raise ProviderError("Provider rate limit reached", kind="rate_limit", details=str(e))
        except openai.APIConnectionError as e:
            # Also covers APITimeoutError
            raise ProviderError(f"Could not reach {self.config.base_url}", kind="network", details=str(e))
        except openai.APIStatusError as e:
            raise ProviderError(f"Provider returned HTTP {e.status_code}", kind="network", details=str(e))

        try:
            return response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderError("Response had no message content", kind="malformed_response", details=str(e))
