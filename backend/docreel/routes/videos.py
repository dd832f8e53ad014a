"""
Video routes - request clips for chunks and track their progress
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..models import ConnectionResponse, VideoGenerationRequest, VideoJobResponse
from ..services.container import ServiceContainer, get_container

router = APIRouter(tags=["videos"])


@router.post("/api/videos/generate", response_model=VideoJobResponse)
async def generate_video(
    request: VideoGenerationRequest,
    container: ServiceContainer = Depends(get_container),
):
    job = await container.video_stage.request_video_for_chunk(
        request.chunk_id,
        script=request.script,
        camera_direction=request.camera_direction,
        environment=request.environment,
        duration=request.duration,
    )
    return VideoJobResponse(**job.to_dict())


@router.get("/api/videos/test-connection", response_model=ConnectionResponse)
async def test_video_connection(container: ServiceContainer = Depends(get_container)):
    connected = await container.video_stage.test_connection()
    return ConnectionResponse(
        connected=connected,
        message="fal.ai API is available" if connected else "fal.ai API not available, using mock implementation",
    )


@router.get("/api/videos/status/{video_id}", response_model=VideoJobResponse)
async def get_video_status(video_id: str, container: ServiceContainer = Depends(get_container)):
    """Refresh and return a video job (idempotent)"""
    job = await container.video_stage.poll_status(video_id)
    return VideoJobResponse(**job.to_dict())


@router.get("/api/videos/{video_id}/download")
async def download_video(video_id: str, container: ServiceContainer = Depends(get_container)):
    content = await container.video_stage.download(video_id)
    return Response(
        content=content,
        media_type="video/mp4",
        headers={"Content-Disposition": f'attachment; filename="video_{video_id}.mp4"'},
    )
