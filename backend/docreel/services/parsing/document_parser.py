"""
Document text extraction for uploads (PDF, DOCX, plain text).
"""

import io
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF
from docx import Document

from docreel.config import (
    ALLOWED_MIME_TYPES,
    DOCX_MIME_TYPE,
    EXTENSION_MIME_TYPES,
    PDF_MIME_TYPE,
    TEXT_MIME_TYPE,
)
from docreel.core import ValidationError, get_logger

logger = get_logger(__name__, component="document_parser")

GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def resolve_media_type(content_type: Optional[str], filename: Optional[str]) -> str:
    """
    Pick the effective media type for an upload.

    The declared type wins unless it is generic, in which case the file
    extension decides. Parameters such as ``; charset=utf-8`` are ignored.
    """
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type.startswith("text/"):
        return TEXT_MIME_TYPE
    if media_type in GENERIC_MIME_TYPES and filename:
        return EXTENSION_MIME_TYPES.get(Path(filename).suffix.lower(), media_type)
    return media_type


def extract_pdf_text(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


def extract_docx_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in doc.paragraphs)


def extract_plain_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


_EXTRACTORS = {
    PDF_MIME_TYPE: extract_pdf_text,
    DOCX_MIME_TYPE: extract_docx_text,
    TEXT_MIME_TYPE: extract_plain_text,
}


def parse_document(data: bytes, content_type: Optional[str], filename: Optional[str] = None) -> str:
    """
    Extract plain text from an uploaded document.

    Raises:
        ValidationError: unsupported media type, or the file could not be read
    """
    media_type = resolve_media_type(content_type, filename)
    if media_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(f"Unsupported file type: {content_type or 'unknown'}")

    try:
        text = _EXTRACTORS[media_type](data)
    except Exception as exc:
        logger.warning("Document parsing failed", extra={
            "file_name": filename,
            "media_type": media_type,
            "error": str(exc),
        })
        raise ValidationError(f"Failed to parse file: {exc}") from exc

    logger.info("Document parsed", extra={
        "file_name": filename,
        "media_type": media_type,
        "bytes": len(data),
        "text_length": len(text),
    })
    return text
