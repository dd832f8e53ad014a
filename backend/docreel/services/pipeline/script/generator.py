"""
Script stage - turns chunk text into a narration script.

Primary path asks the configured LLM for a JSON script; any failure on that
path (provider error, timeout, unparseable or incomplete output) is
reported as a ``ScriptResult`` and the stage substitutes a deterministic
sentence-packing fallback. ``generate_script`` therefore always returns a
script.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from docreel.config import (
    FALLBACK_MAX_SEGMENTS,
    FALLBACK_SEGMENT_MAX_CHARS,
    FALLBACK_TITLE_MAX_CHARS,
    PipelineSettings,
    SCRIPT_SEGMENT_MAX_CHARS,
)
from docreel.core import NotFoundError, get_logger
from docreel.models import Chunk, ChunkStatus, Script
from docreel.services.llm import CompletionRequest, LLMProvider
from docreel.services.parsing import parse_json_response
from docreel.services.storage import SessionStore

from .prompts import SCRIPT_SYSTEM_INSTRUCTION, build_script_prompt

logger = get_logger(__name__, component="script_stage")

REQUIRED_SCRIPT_FIELDS = ("title", "script_chunks", "camera_direction", "environment")

FALLBACK_TITLE = "Main Topic"
FALLBACK_CAMERA_DIRECTION = "Direct eye contact with camera, natural gestures when emphasizing points"
FALLBACK_ENVIRONMENT = "Well-lit office or home setting with soft, natural lighting"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


class InvalidScriptPayload(ValueError):
    """LLM output did not contain a usable script."""


@dataclass
class ScriptResult:
    """Outcome of the primary (LLM) generation attempt."""
    success: bool
    script: Optional[Script] = None
    error: Optional[str] = None


def _truncate_segment(segment: str) -> str:
    if len(segment) > SCRIPT_SEGMENT_MAX_CHARS:
        return segment[:SCRIPT_SEGMENT_MAX_CHARS] + "..."
    return segment


def normalize_script_payload(payload: Optional[Dict[str, Any]]) -> Script:
    """
    Validate a parsed LLM payload and coerce it into a Script.

    All four fields must be present and non-empty. A scalar ``script_chunks``
    becomes a one-element list; segments over 210 characters are cut to 210
    and suffixed with ``...``.

    Raises:
        InvalidScriptPayload: when a required field is missing
    """
    if not isinstance(payload, dict):
        raise InvalidScriptPayload("No JSON object found in model response")

    missing = [name for name in REQUIRED_SCRIPT_FIELDS if not payload.get(name)]
    if missing:
        raise InvalidScriptPayload(f"Model response missing fields: {', '.join(missing)}")

    segments = payload["script_chunks"]
    if not isinstance(segments, list):
        segments = [segments]

    return Script(
        title=str(payload["title"]),
        script_chunks=[_truncate_segment(str(segment)) for segment in segments],
        camera_direction=str(payload["camera_direction"]),
        environment=str(payload["environment"]),
    )


def generate_fallback_script(content: str) -> Script:
    """
    Build a script without a model.

    Sentences are packed greedily into at most five segments of at most 200
    characters, each ending with a period. A sentence too long to fit on its
    own is cut.
    """
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(content or "") if s.strip()]
    title = sentences[0][:FALLBACK_TITLE_MAX_CHARS].strip() if sentences else ""

    # Leave room for the closing period
    body_limit = FALLBACK_SEGMENT_MAX_CHARS - 1
    segments: List[str] = []
    current = ""

    for sentence in sentences:
        sentence = sentence[:body_limit].rstrip()
        if current and len(current) + 1 + len(sentence) > body_limit:
            segments.append(current + ".")
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence

    if current:
        segments.append(current + ".")

    return Script(
        title=title or FALLBACK_TITLE,
        script_chunks=segments[:FALLBACK_MAX_SEGMENTS],
        camera_direction=FALLBACK_CAMERA_DIRECTION,
        environment=FALLBACK_ENVIRONMENT,
    )


class ScriptStage:
    """Script generation plus the chunk side effects around it."""

    def __init__(
        self,
        store: SessionStore,
        provider: Optional[LLMProvider],
        settings: Optional[PipelineSettings] = None,
    ):
        self.store = store
        self.provider = provider
        self.settings = settings or PipelineSettings()

    async def generate_primary(self, content: str) -> ScriptResult:
        """Ask the LLM for a script. Never raises; failures come back in the result."""
        if self.provider is None:
            return ScriptResult(success=False, error="No script provider configured")

        request = CompletionRequest(
            prompt=build_script_prompt(content, SCRIPT_SEGMENT_MAX_CHARS),
            system_instruction=SCRIPT_SYSTEM_INSTRUCTION,
            model=self.settings.script_model,
            temperature=self.settings.script_temperature,
        )

        try:
            completion = await asyncio.wait_for(
                self.provider.complete(request),
                timeout=self.settings.script_timeout_seconds,
            )
            script = normalize_script_payload(parse_json_response(completion.text))
        except asyncio.TimeoutError:
            return ScriptResult(
                success=False,
                error=f"Script provider timed out after {self.settings.script_timeout_seconds:g}s",
            )
        except Exception as exc:
            return ScriptResult(success=False, error=str(exc) or type(exc).__name__)

        return ScriptResult(success=True, script=script)

    async def generate_script(self, content: str) -> Script:
        result = await self.generate_primary(content)
        if result.success and result.script is not None:
            logger.info("Script generated", extra={
                "source": "llm",
                "segments": len(result.script.script_chunks),
            })
            return result.script

        logger.warning("Script provider failed, using fallback", extra={
            "error": result.error,
            "content_length": len(content or ""),
        })
        return generate_fallback_script(content)

    def _require_chunk(self, chunk_id: str) -> Chunk:
        found = self.store.get_chunk(chunk_id)
        if found is None:
            raise NotFoundError("Chunk not found")
        return found[1]

    async def generate_for_chunk(self, chunk_id: str, content: Optional[str] = None) -> Script:
        """Generate and attach a script to a chunk, moving it through scripting to script_ready."""
        chunk = self._require_chunk(chunk_id)
        source_text = content if content and content.strip() else chunk.content

        self.store.update_chunk(chunk_id, status=ChunkStatus.SCRIPTING)
        try:
            script = await self.generate_script(source_text)
        except Exception:
            self.store.update_chunk(chunk_id, status=ChunkStatus.ERROR)
            raise

        self.store.update_chunk(chunk_id, script=script, status=ChunkStatus.SCRIPT_READY)
        return script

    def update_script(self, chunk_id: str, script: Script) -> Chunk:
        """Manual edit path; the chunk becomes script_ready."""
        return self.store.update_chunk(chunk_id, script=script, status=ChunkStatus.SCRIPT_READY)

    def get_script(self, chunk_id: str) -> Script:
        chunk = self._require_chunk(chunk_id)
        if chunk.script is None:
            raise NotFoundError("Script not found")
        return chunk.script

    async def test_connection(self) -> bool:
        """Whether the primary path is usable. The fallback is always available."""
        if self.provider is None:
            return False
        if not self.provider.is_configured():
            return False
        return await self.provider.ping()
