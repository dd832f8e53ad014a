"""
Parsing utilities - uploaded documents and LLM JSON responses
"""

from .document_parser import parse_document, resolve_media_type
from .json_parser import (
    iter_json_objects,
    parse_json_response,
    repair_json_text,
    unwrap_code_fence,
)

__all__ = [
    "parse_document",
    "resolve_media_type",
    "iter_json_objects",
    "parse_json_response",
    "repair_json_text",
    "unwrap_code_fence",
]
