import httpx
import pytest

from docreel.services.llm import (
    CompletionRequest,
    GeminiProvider,
    OllamaProvider,
    ProviderType,
    build_provider,
    local_model_for,
    resolve_provider_type,
)


class TestResolveProviderType:
    def test_explicit_setting_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        assert resolve_provider_type("ollama") == ProviderType.OLLAMA

    def test_gemini_when_key_present(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        assert resolve_provider_type() == ProviderType.GEMINI

    def test_ollama_without_key(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert resolve_provider_type() == ProviderType.OLLAMA

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            resolve_provider_type("claude")


def test_build_provider(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    gemini = build_provider(ProviderType.GEMINI, model="gemini-2.5-pro")
    assert isinstance(gemini, GeminiProvider)
    assert gemini.is_configured() is False
    assert gemini.default_model == "gemini-2.5-pro"

    ollama = build_provider(ProviderType.OLLAMA, base_url="http://ollama:11434/")
    assert isinstance(ollama, OllamaProvider)
    assert ollama.base_url == "http://ollama:11434"


@pytest.mark.asyncio
async def test_unconfigured_gemini(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    provider = GeminiProvider()
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        await provider.complete(CompletionRequest(prompt="prompt"))
    assert await provider.ping() is False


def test_local_model_mapping():
    assert local_model_for("gemini-2.5-flash") == "gemma3:12b"
    assert local_model_for("gemini-unknown") == "gemma3:12b"
    assert local_model_for("mistral:7b") == "mistral:7b"


@pytest.mark.asyncio
async def test_ollama_complete(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={"response": ' {"title": "x"} ', "prompt_eval_count": 3, "eval_count": 4})

    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr("docreel.services.llm.ollama_provider.httpx.AsyncClient", client_factory)

    provider = OllamaProvider(base_url="http://ollama:11434")
    completion = await provider.complete(CompletionRequest(prompt="write", model="gemini-2.5-flash"))

    assert seen["path"] == "/api/generate"
    assert b'"format": "json"' in seen["body"] or b'"format":"json"' in seen["body"]
    assert completion.text == '{"title": "x"}'
    assert completion.model == "gemma3:12b"
    assert completion.usage.total_tokens == 7
    assert completion.elapsed_seconds >= 0
