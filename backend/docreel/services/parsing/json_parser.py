"""
Recovering a JSON object from free-form model output.

Models wrap the object in markdown fences or chat prose, and occasionally
emit Windows paths or LaTeX with unescaped backslashes. ``parse_json_response``
tries the text as-is first and only then a repaired copy.
"""

import json
import re
from typing import Any, Dict, Iterator, Optional

_FENCED_BLOCK = re.compile(r"```[a-zA-Z]*\s*\n?(.*?)```", re.DOTALL)
_JSON_START = re.compile(r"[{\[]")
_STRAY_BACKSLASH = re.compile(r'\\(?!["\\/bfnrtu])')
_TRAILING_COMMA = re.compile(r",\s*([}\]])")

_decoder = json.JSONDecoder()


def unwrap_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or the stripped text if there is none."""
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def repair_json_text(text: str) -> str:
    """Escape backslashes that do not start a JSON escape and drop trailing commas."""
    text = _STRAY_BACKSLASH.sub(r"\\\\", text)
    return _TRAILING_COMMA.sub(r"\1", text)


def iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """
    Yield every top-level JSON object found in text, left to right.

    Arrays are decoded and skipped whole, so objects nested inside a leading
    array are not reported.
    """
    position = 0
    while True:
        match = _JSON_START.search(text, position)
        if match is None:
            return
        try:
            value, end = _decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            position = match.start() + 1
            continue
        if isinstance(value, dict):
            yield value
        position = end


def parse_json_response(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """First JSON object in a model response, or None if nothing decodes."""
    if not text:
        return None

    body = unwrap_code_fence(text)
    for candidate in (body, repair_json_text(body)):
        for value in iter_json_objects(candidate):
            return value
    return None
