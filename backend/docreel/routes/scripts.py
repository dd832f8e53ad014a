"""
Script routes - generate, read and edit chunk narration scripts
"""

from fastapi import APIRouter, Depends

from ..core import get_logger
from ..models import (
    ConnectionResponse,
    MessageResponse,
    Script,
    ScriptGenerationRequest,
    ScriptPayload,
    ScriptUpdateRequest,
)
from ..services.container import ServiceContainer, get_container

logger = get_logger(__name__, component="script_routes")

router = APIRouter(tags=["scripts"])


@router.post("/api/scripts/generate")
async def generate_script(
    request: ScriptGenerationRequest,
    container: ServiceContainer = Depends(get_container),
):
    """Generate a script for a chunk (falls back to a local script when the model fails)"""
    script = await container.script_stage.generate_for_chunk(request.chunk_id, request.content)
    return {
        "script": script.to_dict(),
        "message": "Script generated successfully",
    }


@router.get("/api/scripts/test-connection", response_model=ConnectionResponse)
async def test_script_connection(container: ServiceContainer = Depends(get_container)):
    connected = await container.script_stage.test_connection()
    return ConnectionResponse(
        connected=connected,
        message="Script model is available" if connected else "Script model not available, using fallback",
    )


@router.get("/api/scripts/{chunk_id}", response_model=ScriptPayload)
async def get_script(chunk_id: str, container: ServiceContainer = Depends(get_container)):
    return ScriptPayload(**container.script_stage.get_script(chunk_id).to_dict())


@router.put("/api/scripts/{chunk_id}", response_model=MessageResponse)
async def update_script(
    chunk_id: str,
    request: ScriptUpdateRequest,
    container: ServiceContainer = Depends(get_container),
):
    container.script_stage.update_script(chunk_id, Script.from_dict(request.script.model_dump()))
    logger.info("Script edited", extra={"chunk_id": chunk_id})
    return MessageResponse(message="Script updated successfully")
