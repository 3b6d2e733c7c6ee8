from yuki.core.exceptions import ProviderError
from yuki.schemas.settings import ProviderConfig
from yuki.services.providers.base import ModelGateway
from yuki.services.providers.anthropic_provider import AnthropicGateway
from yuki.services.providers.google_provider import GoogleGateway
from yuki.services.providers.ollama_provider import OllamaGateway
from yuki.services.providers.openai_provider import OpenAICompatibleGateway


PROVIDERS: dict[str, type[ModelGateway]] = {
    "ollama": OllamaGateway,
    "lmstudio": OpenAICompatibleGateway,
    "openai": OpenAICompatibleGateway,
    "openrouter": OpenAICompatibleGateway,
    "anthropic": AnthropicGateway,
    "google": GoogleGateway,
}


def get_gateway(config: ProviderConfig) -> ModelGateway:
    cls = PROVIDERS.get(config.provider)
    if not cls:
        raise ProviderError(f"Unknown provider '{config.provider}'", kind="auth")
    return cls(config)
