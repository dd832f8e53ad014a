"""
Data models: pipeline records (dataclasses) and API schemas (pydantic)
"""

from .status import ChunkStatus, JobStatus, SessionStatus
from .session import Chunk, Script, Session, new_id, utc_now
from .jobs import ExportJob, ExportOptions, InvalidTransition, VideoJob
from .api import (
    ChunkUpdateRequest,
    ReorderRequest,
    ScriptPayload,
    ScriptGenerationRequest,
    ScriptUpdateRequest,
    VideoGenerationRequest,
    ExportRequest,
    ChunkResponse,
    SessionResponse,
    UploadResponse,
    SessionChunksResponse,
    VideoJobResponse,
    ExportJobResponse,
    ConnectionResponse,
    MessageResponse,
)

__all__ = [
    "ChunkStatus",
    "JobStatus",
    "SessionStatus",
    "Chunk",
    "Script",
    "Session",
    "new_id",
    "utc_now",
    "ExportJob",
    "ExportOptions",
    "InvalidTransition",
    "VideoJob",
    "ChunkUpdateRequest",
    "ReorderRequest",
    "ScriptPayload",
    "ScriptGenerationRequest",
    "ScriptUpdateRequest",
    "VideoGenerationRequest",
    "ExportRequest",
    "ChunkResponse",
    "SessionResponse",
    "UploadResponse",
    "SessionChunksResponse",
    "VideoJobResponse",
    "ExportJobResponse",
    "ConnectionResponse",
    "MessageResponse",
]
