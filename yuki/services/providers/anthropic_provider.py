import logging
from typing import Optional

import anthropic

from yuki.core.exceptions import ProviderError
from yuki.schemas.settings import ProviderConfig
from yuki.services.providers.base import ModelGateway

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096


class AnthropicGateway(ModelGateway):
    name = "anthropic"

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.client = anthropic.Anthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    def _complete(self, prompt: str, images: list, system_prompt: Optional[str], model: str) -> str:
        content = []
        for image in images:
            # PDFs go in as document blocks, everything else as image blocks
            block_type = "document" if image.media_type == "application/pdf" else "image"
            content.append({
                "type": block_type,
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": image.to_base64(),
                },
            })
        content.append({"type": "text", "text": prompt})

        kwargs = {}
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            message = self.client.messages.create(
                model=model,
                max_tokens=MAX_TOKENS,
                messages=[{"role": "user", "content": content}],
                **kwargs,
            )
        except anthropic.AuthenticationError as e:
            raise ProviderError("Provider rejected the API key", kind="auth", details=str(e))
        except anthropic.PermissionDeniedError as e:
            raise ProviderError("Provider denied access to the model", kind="auth", details=str(e))
        except anthropic.RateLimitError as e:
            raise ProviderError("Provider rate limit reached", kind="rate_limit", details=str(e))
        except anthropic.APIConnectionError as e:
            raise ProviderError(f"Could not reach {self.config.base_url}", kind="network", details=str(e))
        except anthropic.APIStatusError as e:
            raise ProviderError(f"Provider returned HTTP {e.status_code}", kind="network", details=str(e))

        texts = [block.text for block in message.content if getattr(block, "type", None) == "text"]
        if not texts:
            raise ProviderError("Response had no text block", kind="malformed_response")
        return "".join(texts)
