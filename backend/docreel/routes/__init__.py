"""
Routes module - contains all API route handlers
"""

from .upload import router as upload_router
from .chunks import router as chunks_router
from .scripts import router as scripts_router
from .videos import router as videos_router
from .export import router as export_router

__all__ = [
    "upload_router",
    "chunks_router",
    "scripts_router",
    "videos_router",
    "export_router",
]
