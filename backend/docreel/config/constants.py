"""
Constants configuration

API settings, CORS configuration and upload rules.
"""

import os

API_TITLE = "DocReel API"
API_DESCRIPTION = "Turn documents into narrated video clips and export them as one video"
API_VERSION = "1.0.0"

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME_TYPE = "text/plain"

MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 10 * 1024 * 1024))  # 10MB default

ALLOWED_MIME_TYPES = [PDF_MIME_TYPE, DOCX_MIME_TYPE, TEXT_MIME_TYPE]

EXTENSION_MIME_TYPES = {
    ".pdf": PDF_MIME_TYPE,
    ".docx": DOCX_MIME_TYPE,
    ".txt": TEXT_MIME_TYPE,
    ".md": TEXT_MIME_TYPE,
}

__all__ = [
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "CORS_ORIGINS",
    "PDF_MIME_TYPE",
    "DOCX_MIME_TYPE",
    "TEXT_MIME_TYPE",
    "MAX_UPLOAD_SIZE",
    "ALLOWED_MIME_TYPES",
    "EXTENSION_MIME_TYPES",
]
