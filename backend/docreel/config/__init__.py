"""
Application configuration and settings
"""

from dotenv import load_dotenv
load_dotenv()

from .paths import APP_DIR, BACKEND_DIR, EXPORT_DIR, MUSIC_DIR
from .constants import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    CORS_ORIGINS,
    PDF_MIME_TYPE,
    DOCX_MIME_TYPE,
    TEXT_MIME_TYPE,
    MAX_UPLOAD_SIZE,
    ALLOWED_MIME_TYPES,
    EXTENSION_MIME_TYPES,
)
from .pipeline import (
    PipelineSettings,
    SCRIPT_SEGMENT_MAX_CHARS,
    FALLBACK_SEGMENT_MAX_CHARS,
    FALLBACK_MAX_SEGMENTS,
    FALLBACK_TITLE_MAX_CHARS,
    HEADING_MAX_CHARS,
    PARAGRAPH_CHUNK_MAX_CHARS,
    TITLE_SENTENCE_MAX_CHARS,
    TITLE_PREFIX_CHARS,
)

__all__ = [
    "APP_DIR",
    "BACKEND_DIR",
    "EXPORT_DIR",
    "MUSIC_DIR",
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
    "PipelineSettings",
    "SCRIPT_SEGMENT_MAX_CHARS",
    "FALLBACK_SEGMENT_MAX_CHARS",
    "FALLBACK_MAX_SEGMENTS",
    "FALLBACK_TITLE_MAX_CHARS",
    "HEADING_MAX_CHARS",
    "PARAGRAPH_CHUNK_MAX_CHARS",
    "TITLE_SENTENCE_MAX_CHARS",
    "TITLE_PREFIX_CHARS",
]
