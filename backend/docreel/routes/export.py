"""
Export routes - stitch a session's clips into one downloadable video
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from ..models import ExportJobResponse, ExportOptions, ExportRequest
from ..services.container import ServiceContainer, get_container

router = APIRouter(tags=["export"])


@router.post("/api/export", response_model=ExportJobResponse)
async def start_export(request: ExportRequest, container: ServiceContainer = Depends(get_container)):
    """Start an export; rejected unless every chunk has a finished video"""
    options = ExportOptions(
        include_intro=request.include_intro,
        include_outro=request.include_outro,
        background_music=request.background_music,
    )
    job = await container.export_stage.create_export(request.session_id, options)
    return ExportJobResponse(**job.to_dict())


@router.get("/api/export/status/{export_id}", response_model=ExportJobResponse)
async def get_export_status(export_id: str, container: ServiceContainer = Depends(get_container)):
    return ExportJobResponse(**container.export_stage.get_job(export_id).to_dict())


@router.get("/api/export/download/{export_id}")
async def download_export(export_id: str, container: ServiceContainer = Depends(get_container)):
    path = container.export_stage.get_download_path(export_id)
    return FileResponse(
        str(path),
        media_type="video/mp4",
        filename=f"exported_video_{export_id}.mp4",
    )
