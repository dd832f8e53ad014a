"""
API schemas for request/response bodies
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# === Request Models ===

class ChunkUpdateRequest(BaseModel):
    """Edit a chunk's title and/or content"""
    title: Optional[str] = None
    content: Optional[str] = None


class ReorderRequest(BaseModel):
    """New chunk order for a session; unknown ids are dropped"""
    chunk_ids: List[str]


class ScriptPayload(BaseModel):
    title: str
    script_chunks: List[str]
    camera_direction: str
    environment: str


class ScriptGenerationRequest(BaseModel):
    """Generate a script for a chunk; content defaults to the chunk's own"""
    chunk_id: str
    content: Optional[str] = None


class ScriptUpdateRequest(BaseModel):
    script: ScriptPayload


class VideoGenerationRequest(BaseModel):
    """Request a clip for a chunk; script fields default to the chunk's script"""
    chunk_id: str
    script: Optional[str] = None
    camera_direction: Optional[str] = None
    environment: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1, le=60)


class ExportRequest(BaseModel):
    session_id: str
    include_intro: bool = False
    include_outro: bool = False
    background_music: Optional[str] = None


# === Response Models ===

class ChunkResponse(BaseModel):
    id: str
    title: str
    content: str
    order: int
    script: Optional[ScriptPayload] = None
    video_url: Optional[str] = None
    status: str


class SessionResponse(BaseModel):
    id: str
    file_name: str
    chunks: List[ChunkResponse]
    created_at: datetime
    status: str


class UploadResponse(BaseModel):
    session_id: str
    chunks: List[ChunkResponse]
    message: str = "Document processed successfully"


class SessionChunksResponse(BaseModel):
    chunks: List[ChunkResponse]
    status: str


class VideoJobResponse(BaseModel):
    id: str
    chunk_id: str
    status: str
    progress: int
    video_url: Optional[str] = None
    provider_request_id: Optional[str] = None
    created_at: datetime
    error: Optional[str] = None


class ExportOptionsResponse(BaseModel):
    include_intro: bool
    include_outro: bool
    background_music: Optional[str] = None


class ExportJobResponse(BaseModel):
    id: str
    session_id: str
    status: str
    progress: int
    options: ExportOptionsResponse
    download_url: Optional[str] = None
    start_time: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None


class ConnectionResponse(BaseModel):
    connected: bool
    message: str


class MessageResponse(BaseModel):
    message: str
