"""
Storage - sessions, job registries and export retention
"""

from .session_store import SessionStore, InMemorySessionStore
from .job_registry import JobRegistry, VideoJobRegistry, ExportJobRegistry
from .export_retention import RetentionSweep

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "JobRegistry",
    "VideoJobRegistry",
    "ExportJobRegistry",
    "RetentionSweep",
]
