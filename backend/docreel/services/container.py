"""
Service container - wires stores, providers and stages together.

Routes resolve their dependencies through ``get_container()`` (a FastAPI
dependency); tests install their own container with ``set_container()``.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from docreel.config import EXPORT_DIR, MUSIC_DIR, PipelineSettings
from docreel.core import get_logger
from docreel.services.llm import LLMProvider, build_provider, resolve_provider_type
from docreel.services.pipeline.export import ExportStage, FfmpegMediaToolkit, MediaToolkit
from docreel.services.pipeline.script import ScriptStage
from docreel.services.pipeline.video import FalVideoProvider, VideoProvider, VideoStage
from docreel.services.storage import (
    ExportJobRegistry,
    InMemorySessionStore,
    RetentionSweep,
    SessionStore,
    VideoJobRegistry,
)
from docreel.services.use_cases import UploadDocumentUseCase

logger = get_logger(__name__, component="container")


class ServiceContainer:
    """Owns one instance of every store and stage for the process."""

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        store: Optional[SessionStore] = None,
        llm_provider: Optional[LLMProvider] = None,
        video_provider: Optional[VideoProvider] = None,
        media: Optional[MediaToolkit] = None,
        export_dir: Path = EXPORT_DIR,
        music_dir: Path = MUSIC_DIR,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or PipelineSettings()
        self.store = store or InMemorySessionStore()
        self.video_jobs = VideoJobRegistry()
        self.export_jobs = ExportJobRegistry()
        self.export_dir = Path(export_dir)
        self.export_dir.mkdir(parents=True, exist_ok=True)

        self.upload_use_case = UploadDocumentUseCase(self.store)
        self.script_stage = ScriptStage(self.store, llm_provider, self.settings)
        self.video_stage = VideoStage(
            self.store,
            self.video_jobs,
            video_provider,
            self.settings,
            clock=clock,
        )
        self.export_stage = ExportStage(
            self.store,
            self.export_jobs,
            media or FfmpegMediaToolkit(
                download_timeout=self.settings.download_timeout_seconds,
                ffmpeg_timeout=self.settings.ffmpeg_timeout_seconds,
            ),
            export_dir=self.export_dir,
            music_dir=music_dir,
            settings=self.settings,
        )
        self.retention_sweep = RetentionSweep(
            self.export_jobs,
            self.export_dir,
            retention_hours=self.settings.export_retention_hours,
            interval_minutes=self.settings.export_sweep_interval_minutes,
            enabled=self.settings.export_sweep_enabled,
            clock=clock,
        )

    @classmethod
    def from_env(cls) -> "ServiceContainer":
        """Build the production container from environment settings."""
        settings = PipelineSettings.from_env()

        provider_type = resolve_provider_type(settings.llm_provider or None)
        llm_provider = build_provider(provider_type, model=settings.script_model)
        video_provider = FalVideoProvider(
            api_key=settings.fal_key,
            model=settings.fal_video_model,
        )

        logger.info("Service container built", extra={
            "llm_provider": provider_type.value,
            "script_model": settings.script_model,
            "video_provider": "fal" if video_provider.is_configured() else "mock",
            "video_model": settings.fal_video_model,
        })
        return cls(settings=settings, llm_provider=llm_provider, video_provider=video_provider)

    async def shutdown(self) -> None:
        await self.video_stage.watcher.shutdown()
        await self.export_stage.shutdown()


_container_instance: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the shared ServiceContainer instance (singleton pattern)."""
    global _container_instance
    if _container_instance is None:
        _container_instance = ServiceContainer.from_env()
    return _container_instance


def set_container(container: Optional[ServiceContainer]) -> None:
    """Replace the shared container; ``None`` makes the next lookup rebuild it."""
    global _container_instance
    _container_instance = container
