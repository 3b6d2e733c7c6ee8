from pydantic import BaseModel, Field
from typing import Optional, Literal

ProviderName = Literal["ollama", "lmstudio", "openai", "openrouter", "anthropic", "google"]

DEFAULT_ENDPOINTS = {
    "ollama": "http://localhost:11434",
    "lmstudio": "http://localhost:1234/v1",
    "openai": "https://api.openai.com/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "anthropic": "https://api.anthropic.com",
    "google": "https://generativelanguage.googleapis.com/v1beta",
}

LOCAL_PROVIDERS = ("ollama", "lmstudio")


class ProviderConfig(BaseModel):
    """Active language model provider, passed explicitly to the gateway factory."""
    provider: ProviderName = "ollama"
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    model: str
    vision_model: Optional[str] = None
    timeout_seconds: float = Field(120.0, gt=0)

    @property
    def base_url(self) -> str:
        return (self.endpoint or DEFAULT_ENDPOINTS[self.provider]).rstrip("/")

    @property
    def requires_key(self) -> bool:
        return self.provider not in LOCAL_PROVIDERS


class AppSettingsResponse(BaseModel):
    provider: Optional[ProviderConfig] = None
    default_currency: str
    theme: str = "system"


class AppSettingsUpdate(BaseModel):
    provider: Optional[ProviderConfig] = None
    theme: Optional[str] = None


class ConnectionTestResponse(BaseModel):
    ok: bool
    message: str
