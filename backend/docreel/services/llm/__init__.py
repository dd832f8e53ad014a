"""
Completion providers for script generation (Gemini or a local Ollama server).
"""

from .base import Completion, CompletionRequest, LLMProvider, ProviderType, TokenUsage
from .factory import build_provider, resolve_provider_type
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider, local_model_for

__all__ = [
    "Completion",
    "CompletionRequest",
    "LLMProvider",
    "ProviderType",
    "TokenUsage",
    "GeminiProvider",
    "OllamaProvider",
    "local_model_for",
    "build_provider",
    "resolve_provider_type",
]
