"""
Upload routes

Accepts a PDF/DOCX/text file (multipart ``file``) or pasted text (form
``text`` plus optional ``file_name``), enforces the upload size limit and
delegates parsing and segmentation to UploadDocumentUseCase.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..config import MAX_UPLOAD_SIZE
from ..core import NotFoundError, get_logger
from ..models import SessionResponse, UploadResponse
from ..services.container import ServiceContainer, get_container
from ..services.use_cases import UploadDocumentRequest

logger = get_logger(__name__, component="upload_routes")

router = APIRouter(tags=["upload"])


def _too_large(size: int, file_name: Optional[str]) -> HTTPException:
    logger.warning("Upload too large", extra={
        "size": size,
        "max_size": MAX_UPLOAD_SIZE,
        "file_name": file_name,
    })
    return HTTPException(
        status_code=413,
        detail=f"File too large. Maximum size: {MAX_UPLOAD_SIZE / (1024 * 1024):.0f}MB",
    )


async def _read_limited(file: UploadFile) -> bytes:
    size = 0
    parts = []
    while True:
        part = await file.read(64 * 1024)
        if not part:
            break
        size += len(part)
        if size > MAX_UPLOAD_SIZE:
            raise _too_large(size, file.filename)
        parts.append(part)
    return b"".join(parts)


@router.post("/api/upload", response_model=UploadResponse)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    text: Optional[str] = Form(None),
    file_name: Optional[str] = Form(None),
    container: ServiceContainer = Depends(get_container),
):
    """Create a session from an uploaded document or raw text"""
    if file is not None:
        data = await _read_limited(file)
        request = UploadDocumentRequest(
            file_name=file.filename,
            data=data,
            content_type=file.content_type,
        )
    else:
        if text is not None and len(text.encode("utf-8")) > MAX_UPLOAD_SIZE:
            raise _too_large(len(text.encode("utf-8")), file_name)
        request = UploadDocumentRequest(file_name=file_name, text=text)

    response = await container.upload_use_case.execute(request)

    return UploadResponse(
        session_id=response.session_id,
        chunks=[chunk.to_dict() for chunk in response.chunks],
    )


@router.get("/api/upload/session/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, container: ServiceContainer = Depends(get_container)):
    session = container.store.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return SessionResponse(**session.to_dict())
