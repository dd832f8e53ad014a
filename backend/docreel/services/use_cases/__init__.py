"""
Use Cases package - business operations independent of HTTP.

Modules:
- base: Base use case abstract class
- upload_document_use_case: document/text -> session with chunks
"""

from .base import UseCase
from .upload_document_use_case import (
    UploadDocumentUseCase,
    UploadDocumentRequest,
    UploadDocumentResponse,
)

__all__ = [
    "UseCase",
    "UploadDocumentUseCase",
    "UploadDocumentRequest",
    "UploadDocumentResponse",
]
