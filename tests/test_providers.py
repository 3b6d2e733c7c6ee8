import json

import httpx
import pytest

from yuki.core.exceptions import ProviderError
from yuki.schemas.settings import ProviderConfig
from yuki.services.providers import ImageInput, get_gateway
from yuki.services.providers.anthropic_provider import AnthropicGateway
from yuki.services.providers.google_provider import GoogleGateway
from yuki.services.providers.ollama_provider import OllamaGateway
from yuki.services.providers.openai_provider import OpenAICompatibleGateway

_RealClient = httpx.Client


@pytest.fixture()
def mock_http(monkeypatch):
    """Route every httpx.Client the gateways open through a handler set by the test."""
    state = {"handler": None, "requests": []}

    def handler(request):
        state["requests"].append(request)
        return state["handler"](request)

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return _RealClient(*args, **kwargs)

    monkeypatch.setattr(httpx, "Client", client_factory)
    return state


def test_factory_picks_the_gateway_for_each_provider():
    assert isinstance(get_gateway(ProviderConfig(provider="ollama", model="llama3.2")), OllamaGateway)
    assert isinstance(get_gateway(ProviderConfig(provider="lmstudio", model="qwen")), OpenAICompatibleGateway)
    assert isinstance(get_gateway(ProviderConfig(provider="openrouter", api_key="k", model="m")), OpenAICompatibleGateway)
    assert isinstance(get_gateway(ProviderConfig(provider="anthropic", api_key="k", model="m")), AnthropicGateway)
    assert isinstance(get_gateway(ProviderConfig(provider="google", api_key="k", model="m")), GoogleGateway)


def test_remote_provider_without_key_is_an_auth_error():
    with pytest.raises(ProviderError) as exc:
        get_gateway(ProviderConfig(provider="openai", model="gpt-4o-mini"))
    assert exc.value.kind == "auth"


def test_endpoint_defaults_per_provider():
    assert ProviderConfig(provider="ollama", model="m").base_url == "http://localhost:11434"
    assert ProviderConfig(provider="ollama", model="m", endpoint="http://box:11434/").base_url == "http://box:11434"


def test_ollama_generate(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(200, json={"response": "  hello  "})
    gateway = OllamaGateway(ProviderConfig(provider="ollama", model="llama3.2", vision_model="llava"))

    text = gateway.complete("Say hello", images=[ImageInput(data=b"abc")])

    assert text == "hello"
    request = mock_http["requests"][0]
    assert request.url.path == "/api/generate"
    body = json.loads(request.content)
    assert body["model"] == "llava"
    assert body["images"] == ["YWJj"]
    assert body["stream"] is False


@pytest.mark.parametrize("status_code,kind", [(401, "auth"), (403, "auth"), (429, "rate_limit"), (500, "network")])
def test_ollama_http_errors_map_to_kinds(mock_http, status_code, kind):
    mock_http["handler"] = lambda request: httpx.Response(status_code, text="nope")
    gateway = OllamaGateway(ProviderConfig(provider="ollama", model="llama3.2"))

    with pytest.raises(ProviderError) as exc:
        gateway.complete("hi")
    assert exc.value.kind == kind


def test_ollama_unreachable_is_a_network_error(mock_http):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    mock_http["handler"] = refuse
    gateway = OllamaGateway(ProviderConfig(provider="ollama", model="llama3.2"))

    with pytest.raises(ProviderError) as exc:
        gateway.complete("hi")
    assert exc.value.kind == "network"
    assert gateway.test_connection() is False


def test_empty_reply_is_malformed(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(200, json={"response": "   "})
    gateway = OllamaGateway(ProviderConfig(provider="ollama", model="llama3.2"))

    with pytest.raises(ProviderError) as exc:
        gateway.complete("hi")
    assert exc.value.kind == "malformed_response"


def test_gemini_generate_content(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"text": "o"}, {"text": "k"}]}}],
    })
    gateway = GoogleGateway(ProviderConfig(provider="google", api_key="g-key", model="gemini-1.5-flash"))

    assert gateway.complete("ping") == "ok"
    request = mock_http["requests"][0]
    assert request.url.path.endswith("/models/gemini-1.5-flash:generateContent")
    assert request.url.params["key"] == "g-key"


def test_gemini_without_candidates_is_malformed(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(200, json={"promptFeedback": {}})
    gateway = GoogleGateway(ProviderConfig(provider="google", api_key="g-key", model="gemini-1.5-flash"))

    with pytest.raises(ProviderError) as exc:
        gateway.complete("ping")
    assert exc.value.kind == "malformed_response"
