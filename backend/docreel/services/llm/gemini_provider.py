"""
Gemini completions through the google-genai SDK.
"""

import asyncio
import os
from typing import Optional

from google import genai
from google.genai import types

from docreel.core import get_logger

from .base import Completion, CompletionRequest, LLMProvider, ProviderType, TokenUsage

logger = get_logger(__name__, component="gemini_provider")


class GeminiProvider(LLMProvider):
    provider_type = ProviderType.GEMINI
    default_model = "gemini-2.5-flash"

    def __init__(self, api_key: Optional[str] = None, default_model: Optional[str] = None):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        if default_model:
            self.default_model = default_model
        self.client = genai.Client(api_key=self.api_key) if self.api_key else None

    def is_configured(self) -> bool:
        return self.client is not None

    def _generation_config(self, request: CompletionRequest) -> types.GenerateContentConfig:
        options = {"temperature": request.temperature}
        if request.max_output_tokens:
            options["max_output_tokens"] = request.max_output_tokens
        if request.system_instruction:
            options["system_instruction"] = request.system_instruction
        if request.expect_json:
            options["response_mime_type"] = "application/json"
        return types.GenerateContentConfig(**options)

    async def _complete(self, request: CompletionRequest, model: str) -> Completion:
        if not self.is_configured():
            raise RuntimeError("Gemini is not configured: GEMINI_API_KEY is missing")

        # google-genai's sync client blocks; keep it off the event loop
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=model,
            contents=request.prompt,
            config=self._generation_config(request),
        )

        usage = None
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = TokenUsage(
                prompt_tokens=getattr(metadata, "prompt_token_count", 0) or 0,
                completion_tokens=getattr(metadata, "candidates_token_count", 0) or 0,
            )

        return Completion(
            text=(response.text or "").strip(),
            model=model,
            provider=self.provider_type,
            usage=usage,
            raw=response,
        )

    async def ping(self) -> bool:
        if not self.is_configured():
            return False
        try:
            await asyncio.to_thread(self.client.models.get, model=self.default_model)
        except Exception as exc:
            logger.warning("Gemini ping failed", extra={"model": self.default_model, "error": str(exc)})
            return False
        return True
