"""
Upload document use case.

Turns an uploaded file (or pasted text) into a stored session:
    - Resolves the display file name
    - Extracts text from PDF, DOCX or plain text
    - Segments the text into ordered chunks
    - Creates the session in the store
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional

from docreel.core import ValidationError, get_logger, sanitize_filename, set_session_id
from docreel.models import Chunk
from docreel.services.parsing import parse_document
from docreel.services.segmentation import segment
from docreel.services.storage import SessionStore

from .base import UseCase

logger = get_logger(__name__, component="upload_use_case")

DEFAULT_TEXT_FILE_NAME = "Text Input"


@dataclass
class UploadDocumentRequest:
    """
    Either ``data`` (raw file bytes with ``content_type``) or ``text`` must be set.
    """
    file_name: Optional[str] = None
    data: Optional[bytes] = None
    content_type: Optional[str] = None
    text: Optional[str] = None


@dataclass
class UploadDocumentResponse:
    session_id: str
    file_name: str
    chunks: List[Chunk]


class UploadDocumentUseCase(UseCase[UploadDocumentRequest, UploadDocumentResponse]):
    def __init__(self, store: SessionStore):
        self.store = store

    @staticmethod
    def _display_name(raw: Optional[str], default: str) -> str:
        if not raw:
            return default
        try:
            return sanitize_filename(raw)
        except ValueError:
            return default

    async def execute(self, request: UploadDocumentRequest) -> UploadDocumentResponse:
        if request.data is not None:
            file_name = self._display_name(request.file_name, "document")
            # PDF and DOCX parsing is CPU bound
            text = await asyncio.to_thread(parse_document, request.data, request.content_type, file_name)
        elif request.text is not None:
            file_name = self._display_name(request.file_name, DEFAULT_TEXT_FILE_NAME)
            text = request.text
        else:
            raise ValidationError("No file or text provided")

        if not text.strip():
            raise ValidationError("Document contains no text")

        chunks = segment(text)
        if not chunks:
            raise ValidationError("Document contains no text")

        session_id = self.store.create(file_name, chunks)
        set_session_id(session_id)
        logger.info("Document uploaded", extra={
            "session_id": session_id,
            "file_name": file_name,
            "chunk_count": len(chunks),
            "source": "file" if request.data is not None else "text",
        })

        session = self.store.get(session_id)
        return UploadDocumentResponse(
            session_id=session_id,
            file_name=file_name,
            chunks=list(session.chunks),
        )
