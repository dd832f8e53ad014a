"""
Chunk routes - inspect, edit, reorder and delete a session's chunks
"""

from fastapi import APIRouter, Depends

from ..core import NotFoundError
from ..models import (
    ChunkResponse,
    ChunkUpdateRequest,
    MessageResponse,
    ReorderRequest,
    SessionChunksResponse,
)
from ..services.container import ServiceContainer, get_container

router = APIRouter(tags=["chunks"])


@router.get("/api/chunks/session/{session_id}", response_model=SessionChunksResponse)
async def get_session_chunks(session_id: str, container: ServiceContainer = Depends(get_container)):
    session = container.store.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return SessionChunksResponse(
        chunks=[chunk.to_dict() for chunk in session.chunks],
        status=session.status.value,
    )


@router.post("/api/chunks/session/{session_id}/reorder", response_model=SessionChunksResponse)
async def reorder_chunks(
    session_id: str,
    request: ReorderRequest,
    container: ServiceContainer = Depends(get_container),
):
    """Apply a new chunk order; chunks missing from the list are dropped"""
    chunks = container.store.reorder(session_id, request.chunk_ids)
    session = container.store.get(session_id)
    return SessionChunksResponse(
        chunks=[chunk.to_dict() for chunk in chunks],
        status=session.status.value,
    )


@router.get("/api/chunks/{chunk_id}", response_model=ChunkResponse)
async def get_chunk(chunk_id: str, container: ServiceContainer = Depends(get_container)):
    found = container.store.get_chunk(chunk_id)
    if found is None:
        raise NotFoundError("Chunk not found")
    return ChunkResponse(**found[1].to_dict())


@router.put("/api/chunks/{chunk_id}", response_model=ChunkResponse)
async def update_chunk(
    chunk_id: str,
    request: ChunkUpdateRequest,
    container: ServiceContainer = Depends(get_container),
):
    # Empty strings leave the field unchanged
    fields = {name: value for name, value in request.model_dump().items() if value}
    chunk = container.store.update_chunk(chunk_id, **fields)
    return ChunkResponse(**chunk.to_dict())


@router.delete("/api/chunks/{chunk_id}", response_model=MessageResponse)
async def delete_chunk(chunk_id: str, container: ServiceContainer = Depends(get_container)):
    container.store.delete_chunk(chunk_id)
    return MessageResponse(message="Chunk deleted successfully")
