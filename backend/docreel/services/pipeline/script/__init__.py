"""Narration script generation."""

from .generator import (
    ScriptStage,
    ScriptResult,
    InvalidScriptPayload,
    normalize_script_payload,
    generate_fallback_script,
)
from .prompts import SCRIPT_SYSTEM_INSTRUCTION, build_script_prompt

__all__ = [
    "ScriptStage",
    "ScriptResult",
    "InvalidScriptPayload",
    "normalize_script_payload",
    "generate_fallback_script",
    "SCRIPT_SYSTEM_INSTRUCTION",
    "build_script_prompt",
]
