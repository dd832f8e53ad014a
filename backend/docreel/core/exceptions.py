"""
Core Exceptions
Error taxonomy shared by every pipeline stage.

Each error carries an ``error_kind`` that the HTTP layer maps to a status code:
    not_found  -> 404  (session/chunk/job id unresolved)
    validation -> 400  (missing fields, unsupported media, unmet precondition)
    upstream   -> 502  (provider error or timeout with no local fallback)
    internal   -> 500  (unexpected parse/logic error)
"""

from typing import Any, Dict


class ErrorKind:
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


class DocReelError(Exception):
    """Base exception for all application errors."""

    error_kind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": True, "error_kind": self.error_kind, "message": self.message}


class NotFoundError(DocReelError):
    error_kind = ErrorKind.NOT_FOUND


class ValidationError(DocReelError):
    error_kind = ErrorKind.VALIDATION


class UpstreamError(DocReelError):
    """A provider (LLM, video, download) failed or timed out."""
    error_kind = ErrorKind.UPSTREAM


class InternalError(DocReelError):
    error_kind = ErrorKind.INTERNAL
