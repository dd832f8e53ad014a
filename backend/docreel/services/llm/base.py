"""
Text completion providers used by the script stage.

A provider turns one prompt into one block of model text. It knows nothing
about scripts: JSON extraction and validation live with the caller.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ProviderType(str, Enum):
    GEMINI = "gemini"
    OLLAMA = "ollama"


@dataclass
class CompletionRequest:
    prompt: str
    model: Optional[str] = None
    temperature: float = 0.7
    max_output_tokens: Optional[int] = None
    system_instruction: Optional[str] = None
    # Ask the backend for a JSON body when it supports constrained output
    expect_json: bool = True


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class Completion:
    text: str
    model: str
    provider: ProviderType
    usage: Optional[TokenUsage] = None
    elapsed_seconds: float = 0.0
    raw: Any = None


class LLMProvider(ABC):
    """
    Base class for completion backends.

    Subclasses implement ``_complete``; ``complete`` fills in the model and
    timing so every provider reports the same way.
    """

    provider_type: ProviderType
    default_model: str = ""

    @abstractmethod
    async def _complete(self, request: CompletionRequest, model: str) -> Completion:
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider has what it needs to attempt a call (keys, host)."""

    @abstractmethod
    async def ping(self) -> bool:
        """Cheap round trip to the backend. Never raises."""

    def resolve_model(self, requested: Optional[str]) -> str:
        return requested or self.default_model

    async def complete(self, request: CompletionRequest) -> Completion:
        model = self.resolve_model(request.model)
        started = time.perf_counter()
        completion = await self._complete(request, model)
        completion.elapsed_seconds = time.perf_counter() - started
        return completion

    @property
    def name(self) -> str:
        return self.provider_type.value
