"""
Picks and builds the completion provider for script generation.
"""

import os
from typing import Optional

from .base import LLMProvider, ProviderType
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider


def resolve_provider_type(configured: Optional[str] = None) -> ProviderType:
    """
    An explicit choice (argument, then LLM_PROVIDER) wins. Unset means Gemini
    when GEMINI_API_KEY exists and the local Ollama server otherwise.
    """
    choice = (configured if configured is not None else os.getenv("LLM_PROVIDER", "")).strip().lower()
    if choice:
        try:
            return ProviderType(choice)
        except ValueError:
            raise ValueError(f"Unknown LLM provider: {choice}") from None

    return ProviderType.GEMINI if os.getenv("GEMINI_API_KEY") else ProviderType.OLLAMA


def build_provider(
    provider_type: Optional[ProviderType] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: float = 300.0,
) -> LLMProvider:
    """
    Construct a provider without contacting it. An unconfigured provider
    fails on ``complete`` and the script stage falls back.
    """
    provider_type = provider_type or resolve_provider_type()

    if provider_type == ProviderType.GEMINI:
        return GeminiProvider(api_key=api_key, default_model=model)
    return OllamaProvider(base_url=base_url, timeout=timeout)
