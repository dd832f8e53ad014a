"""
Video and export job records

Jobs reference chunks and sessions by id only. Export jobs enforce their own
state machine: pending -> processing -> completed | failed, terminal states
are sticky and progress never decreases.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .session import new_id, utc_now
from .status import JobStatus


@dataclass
class VideoJob:
    chunk_id: str
    id: str = field(default_factory=new_id)
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    video_url: Optional[str] = None
    provider_request_id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chunk_id": self.chunk_id,
            "status": self.status.value,
            "progress": self.progress,
            "video_url": self.video_url,
            "provider_request_id": self.provider_request_id,
            "created_at": self.created_at.isoformat(),
            "error": self.error,
        }


@dataclass
class ExportOptions:
    include_intro: bool = False
    include_outro: bool = False
    background_music: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "include_intro": self.include_intro,
            "include_outro": self.include_outro,
            "background_music": self.background_music,
        }


class InvalidTransition(Exception):
    """Raised when an export job is moved out of a terminal state."""


@dataclass
class ExportJob:
    session_id: str
    options: ExportOptions = field(default_factory=ExportOptions)
    id: str = field(default_factory=new_id)
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    output_path: Optional[str] = None
    download_url: Optional[str] = None
    start_time: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def _guard(self) -> None:
        if self.status.is_terminal():
            raise InvalidTransition(f"Export {self.id} is already {self.status.value}")

    def advance(self, progress: int) -> None:
        """Move progress forward; lower values are ignored."""
        self._guard()
        if self.status == JobStatus.PENDING:
            self.status = JobStatus.PROCESSING
        self.progress = max(self.progress, min(int(progress), 100))

    def complete(self, output_path: str, download_url: str, completed_at: Optional[datetime] = None) -> None:
        self._guard()
        self.output_path = output_path
        self.download_url = download_url
        self.progress = 100
        self.status = JobStatus.COMPLETED
        self.completed_at = completed_at or utc_now()

    def fail(self, error: str) -> None:
        self._guard()
        self.status = JobStatus.FAILED
        self.error = error
        self.output_path = None
        self.download_url = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "status": self.status.value,
            "progress": self.progress,
            "options": self.options.to_dict(),
            "output_path": self.output_path,
            "download_url": self.download_url,
            "start_time": self.start_time.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
        }
