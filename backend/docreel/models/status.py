"""
Status enumerations for chunks, sessions and jobs.

Centralized status definitions to replace magic strings throughout codebase.
"""

from enum import Enum
from typing import Iterable


class ChunkStatus(str, Enum):
    """Lifecycle of a single chunk through the pipeline stages."""

    PENDING = "pending"
    SCRIPTING = "scripting"
    SCRIPT_READY = "script_ready"
    GENERATING_VIDEO = "generating_video"
    VIDEO_READY = "video_ready"
    ERROR = "error"


class JobStatus(str, Enum):
    """Status of a video or export job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """Terminal states are sticky: no transition leaves them."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class SessionStatus(str, Enum):
    """Coarse session state derived from its chunks."""

    UPLOADING = "uploading"
    CHUNKING = "chunking"
    SCRIPTING = "scripting"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"

    @classmethod
    def from_chunks(cls, statuses: Iterable[ChunkStatus]) -> "SessionStatus":
        """
        Derive the session status from chunk statuses.

        Precedence: any error -> ERROR; all video_ready -> COMPLETED;
        any video activity -> GENERATING; any script activity -> SCRIPTING;
        otherwise the session is still at CHUNKING.
        """
        statuses = list(statuses)
        if not statuses:
            return cls.CHUNKING
        if ChunkStatus.ERROR in statuses:
            return cls.ERROR
        if all(status == ChunkStatus.VIDEO_READY for status in statuses):
            return cls.COMPLETED
        if any(status in (ChunkStatus.GENERATING_VIDEO, ChunkStatus.VIDEO_READY) for status in statuses):
            return cls.GENERATING
        if any(status in (ChunkStatus.SCRIPTING, ChunkStatus.SCRIPT_READY) for status in statuses):
            return cls.SCRIPTING
        return cls.CHUNKING


__all__ = [
    "ChunkStatus",
    "JobStatus",
    "SessionStatus",
]
