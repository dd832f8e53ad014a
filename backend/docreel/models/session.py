"""
Session and chunk records

A session owns an ordered list of chunks; list position and ``Chunk.order``
always agree (0..N-1). Records are plain dataclasses mutated in place by the
session store.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .status import ChunkStatus, SessionStatus


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Script:
    title: str
    script_chunks: List[str]
    camera_direction: str
    environment: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "script_chunks": list(self.script_chunks),
            "camera_direction": self.camera_direction,
            "environment": self.environment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Script":
        return cls(
            title=data["title"],
            script_chunks=list(data["script_chunks"]),
            camera_direction=data["camera_direction"],
            environment=data["environment"],
        )

    @property
    def narration(self) -> str:
        """All segments joined, as sent to the video provider."""
        return " ".join(segment.strip() for segment in self.script_chunks if segment.strip())


@dataclass
class Chunk:
    title: str
    content: str
    order: int = 0
    id: str = field(default_factory=new_id)
    script: Optional[Script] = None
    video_url: Optional[str] = None
    status: ChunkStatus = ChunkStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "order": self.order,
            "script": self.script.to_dict() if self.script else None,
            "video_url": self.video_url,
            "status": self.status.value,
        }


@dataclass
class Session:
    file_name: str
    chunks: List[Chunk] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    status: SessionStatus = SessionStatus.CHUNKING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "chunks": [chunk.to_dict() for chunk in self.chunks],
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
        }
