"""
Completions from a local Ollama server.

Gemini model names configured for the hosted provider are translated to a
local model so the same SCRIPT_MODEL setting works against either backend.
"""

import os
from typing import Any, Dict, Optional

import httpx

from docreel.core import get_logger

from .base import Completion, CompletionRequest, LLMProvider, ProviderType, TokenUsage

logger = get_logger(__name__, component="ollama_provider")

LOCAL_MODEL_FOR_GEMINI = {
    "gemini-flash-lite-latest": "gemma3:4b",
    "gemini-2.0-flash-lite": "gemma3:4b",
    "gemini-2.0-flash": "gemma3:12b",
    "gemini-2.5-flash": "gemma3:12b",
    "gemini-2.5-pro": "deepseek-r1:32b",
}
DEFAULT_LOCAL_MODEL = "gemma3:12b"


def local_model_for(model: str) -> str:
    """Map a hosted model name onto a local one; non-Gemini names pass through."""
    if not model.startswith("gemini"):
        return model
    return LOCAL_MODEL_FOR_GEMINI.get(model, DEFAULT_LOCAL_MODEL)


class OllamaProvider(LLMProvider):
    provider_type = ProviderType.OLLAMA
    default_model = DEFAULT_LOCAL_MODEL

    def __init__(self, base_url: Optional[str] = None, timeout: float = 300.0):
        self.base_url = (base_url or os.getenv("OLLAMA_HOST", "http://localhost:11434")).rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def resolve_model(self, requested: Optional[str]) -> str:
        resolved = local_model_for(requested or self.default_model)
        if requested and resolved != requested:
            logger.debug("Mapped model", extra={"requested": requested, "resolved": resolved})
        return resolved

    def _payload(self, request: CompletionRequest, model: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {"temperature": request.temperature}
        if request.max_output_tokens:
            options["num_predict"] = request.max_output_tokens

        payload: Dict[str, Any] = {
            "model": model,
            "prompt": request.prompt,
            "stream": False,
            "options": options,
        }
        if request.expect_json:
            payload["format"] = "json"
        if request.system_instruction:
            payload["system"] = request.system_instruction
        return payload

    async def _complete(self, request: CompletionRequest, model: str) -> Completion:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.base_url}/api/generate", json=self._payload(request, model))
            response.raise_for_status()
            data = response.json()

        usage = None
        if "prompt_eval_count" in data or "eval_count" in data:
            usage = TokenUsage(
                prompt_tokens=data.get("prompt_eval_count", 0),
                completion_tokens=data.get("eval_count", 0),
            )
        return Completion(
            text=data.get("response", "").strip(),
            model=model,
            provider=self.provider_type,
            usage=usage,
            raw=data,
        )

    async def ping(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/api/tags")
        except httpx.HTTPError as exc:
            logger.warning("Ollama ping failed", extra={"base_url": self.base_url, "error": str(exc)})
            return False
        return response.status_code == 200
