import logging
from typing import Optional

import httpx

from yuki.core.exceptions import ProviderError
from yuki.services.providers.base import ModelGateway, error_kind_for_status

logger = logging.getLogger(__name__)


class GoogleGateway(ModelGateway):
    """Gemini generateContent REST endpoint."""
    name = "google"

    def _complete(self, prompt: str, images: list, system_prompt: Optional[str], model: str) -> str:
        parts = [{"text": prompt}]
        for image in images:
            parts.append({"inline_data": {"mime_type": image.media_type, "data": image.to_base64()}})

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"temperature": 0.1},
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        url = f"{self.config.base_url}/models/{model}:generateContent"
        try:
            with httpx.Client(timeout=self.config.timeout_seconds) as client:
                r = client.post(url, params={"key": self.config.api_key}, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise ProviderError(f"Gemini returned HTTP {status_code}", kind=error_kind_for_status(status_code), details=e.response.text)
        except httpx.HTTPError as e:
            raise ProviderError("Could not reach Gemini", kind="network", details=str(e))
        except ValueError as e:
            raise ProviderError("Gemini response was not JSON", kind="malformed_response", details=str(e))

        try:
            candidate_parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in candidate_parts)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Gemini response had no candidate text", kind="malformed_response", details=str(e))
