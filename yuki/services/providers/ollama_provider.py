import logging
from typing import Optional

import httpx

from yuki.core.exceptions import ProviderError
from yuki.services.providers.base import ModelGateway, error_kind_for_status

logger = logging.getLogger(__name__)


class OllamaGateway(ModelGateway):
    """Local Ollama server; no key required."""
    name = "ollama"

    def _complete(self, prompt: str, images: list, system_prompt: Optional[str], model: str) -> str:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "keep_alive": "5m",
            "options": {"temperature": 0.1},
        }
        if system_prompt:
            payload["system"] = system_prompt
        if images:
            payload["images"] = [image.to_base64() for image in images]

        timeout = httpx.Timeout(self.config.timeout_seconds, connect=8)
        try:
            with httpx.Client(timeout=timeout) as client:
                r = client.post(f"{self.config.base_url}/api/generate", json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise ProviderError(f"Ollama returned HTTP {status_code}", kind=error_kind_for_status(status_code), details=e.response.text)
        except httpx.HTTPError as e:
            raise ProviderError(f"Could not reach Ollama at {self.config.base_url}", kind="network", details=str(e))
        except ValueError as e:
            raise ProviderError("Ollama response was not JSON", kind="malformed_response", details=str(e))

        if not isinstance(data, dict) or "response" not in data:
            raise ProviderError("Ollama response had no 'response' field", kind="malformed_response")
        logger.info(f"Ollama generate success ({model}, {len(data['response'] or '')} chars)")
        return data["response"]
