"""
Video stage - one video clip per chunk script.

Jobs are created against the configured provider. When no provider is
configured, or the provider cannot be reached, the job follows a mock
progression keyed by its creation time: 1% per elapsed second, completed at
100% with a placeholder URL. Observing a completed job pushes its URL onto
the owning chunk.
"""

from datetime import datetime
from typing import Callable, Dict, Optional

import httpx

from docreel.config import PipelineSettings
from docreel.core import NotFoundError, UpstreamError, ValidationError, get_logger
from docreel.models import ChunkStatus, JobStatus, VideoJob, utc_now
from docreel.services.storage import SessionStore, VideoJobRegistry

from .provider import ProviderUpdate, VideoProvider, build_video_prompt, map_provider_status
from .watcher import VideoStatusWatcher

logger = get_logger(__name__, component="video_stage")

MOCK_VIDEO_URL_PREFIX = "https://mock-cdn.example.com/videos/"
MOCK_VIDEO_URL_TEMPLATE = MOCK_VIDEO_URL_PREFIX + "{job_id}.mp4"


def is_mock_video_url(url: Optional[str]) -> bool:
    """Whether a URL came from mock progression rather than a provider."""
    return bool(url) and url.startswith(MOCK_VIDEO_URL_PREFIX)


class VideoStage:
    def __init__(
        self,
        store: SessionStore,
        registry: VideoJobRegistry,
        provider: Optional[VideoProvider] = None,
        settings: Optional[PipelineSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.registry = registry
        self.provider = provider
        self.settings = settings or PipelineSettings()
        self.clock = clock or utc_now
        # chunk id -> id of the latest video job requested for it
        self._active_jobs: Dict[str, str] = {}
        self.watcher = VideoStatusWatcher(
            self.poll_status,
            interval_seconds=self.settings.video_poll_interval_seconds,
            max_attempts=self.settings.video_poll_max_attempts,
        )

    def provider_ready(self) -> bool:
        return self.provider is not None and self.provider.is_configured()

    @staticmethod
    def _apply_update(job: VideoJob, update: ProviderUpdate) -> None:
        status, progress = map_provider_status(update.status)
        job.status = status
        job.progress = max(job.progress, progress)
        if status == JobStatus.COMPLETED:
            job.video_url = update.video_url
        if status == JobStatus.FAILED:
            job.error = update.error or "Video generation failed"

    def _apply_mock_progress(self, job: VideoJob) -> None:
        elapsed = (self.clock() - job.created_at).total_seconds()
        progress = min(100, max(0, int(elapsed)))
        if progress >= 100:
            job.status = JobStatus.COMPLETED
            job.progress = 100
            job.video_url = MOCK_VIDEO_URL_TEMPLATE.format(job_id=job.id)
        else:
            job.status = JobStatus.PROCESSING
            job.progress = max(job.progress, progress)

    async def request_video(
        self,
        script: str,
        camera_direction: str,
        environment: str,
        duration: Optional[int] = None,
        chunk_id: str = "",
    ) -> VideoJob:
        """
        Start video generation and register the job.

        Returns a pending job, or a completed one when the provider answers
        synchronously. Provider errors are logged and the job falls back to
        mock progression.
        """
        if not script or not script.strip():
            raise ValidationError("script is required")

        duration = duration or self.settings.video_default_duration
        job = VideoJob(chunk_id=chunk_id, created_at=self.clock())

        if self.provider_ready():
            prompt = build_video_prompt(script, camera_direction, environment)
            try:
                update = await self.provider.submit(prompt, duration, self.settings.video_aspect_ratio)
            except Exception as exc:
                logger.warning("Video provider submit failed, using mock progression", extra={
                    "job_id": job.id,
                    "chunk_id": chunk_id,
                    "error": str(exc),
                })
            else:
                job.provider_request_id = update.request_id
                self._apply_update(job, update)

        self.registry.add(job)
        if chunk_id:
            self._active_jobs[chunk_id] = job.id
        logger.info("Video job created", extra={
            "job_id": job.id,
            "chunk_id": chunk_id,
            "status": job.status.value,
            "provider_request_id": job.provider_request_id,
            "duration": duration,
        })
        return job

    async def request_video_for_chunk(
        self,
        chunk_id: str,
        script: Optional[str] = None,
        camera_direction: Optional[str] = None,
        environment: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> VideoJob:
        """Request a video for a chunk, taking missing inputs from its stored script."""
        found = self.store.get_chunk(chunk_id)
        if found is None:
            raise NotFoundError("Chunk not found")
        _, chunk = found

        stored = chunk.script
        script = script or (stored.narration if stored else None)
        if not script:
            raise ValidationError("Chunk has no script; generate one first")
        camera_direction = camera_direction or (stored.camera_direction if stored else "")
        environment = environment or (stored.environment if stored else "")

        superseded = self._active_jobs.get(chunk_id)
        job = await self.request_video(script, camera_direction, environment, duration, chunk_id=chunk_id)
        if superseded:
            self.watcher.cancel(superseded)

        if job.status == JobStatus.COMPLETED and job.video_url:
            self.store.update_chunk(chunk_id, video_url=job.video_url, status=ChunkStatus.VIDEO_READY)
        else:
            self.store.update_chunk(chunk_id, status=ChunkStatus.GENERATING_VIDEO)
            if self.settings.video_auto_watch:
                self.watcher.watch(job.id)
        return job

    def is_active_job(self, job: VideoJob) -> bool:
        """Only the newest job requested for a chunk may change that chunk."""
        active = self._active_jobs.get(job.chunk_id)
        return active is None or active == job.id

    def _propagate_to_chunk(self, job: VideoJob) -> None:
        if not job.chunk_id:
            return
        if not self.is_active_job(job):
            logger.info("Ignoring result of superseded video job", extra={
                "job_id": job.id,
                "chunk_id": job.chunk_id,
                "active_job_id": self._active_jobs.get(job.chunk_id),
            })
            return
        if self.store.get_chunk(job.chunk_id) is None:
            logger.info("Chunk for video job no longer exists", extra={
                "job_id": job.id,
                "chunk_id": job.chunk_id,
            })
            return

        if job.status == JobStatus.COMPLETED and job.video_url:
            self.store.update_chunk(job.chunk_id, video_url=job.video_url, status=ChunkStatus.VIDEO_READY)
        elif job.status == JobStatus.FAILED:
            self.store.update_chunk(job.chunk_id, status=ChunkStatus.ERROR)

    async def poll_status(self, job_id: str) -> VideoJob:
        """Refresh a job from the provider (or mock progression). Safe to call repeatedly."""
        job = self.registry.require(job_id)

        if not job.status.is_terminal():
            update: Optional[ProviderUpdate] = None
            if self.provider_ready() and job.provider_request_id:
                try:
                    update = await self.provider.get_status(job.provider_request_id)
                except Exception as exc:
                    logger.warning("Video provider status failed, using mock progression", extra={
                        "job_id": job_id,
                        "error": str(exc),
                    })

            if update is not None:
                self.registry.update(job_id, lambda j: self._apply_update(j, update))
            else:
                self.registry.update(job_id, self._apply_mock_progress)

        if job.status.is_terminal():
            self._propagate_to_chunk(job)
        return job

    def get_job(self, job_id: str) -> VideoJob:
        return self.registry.require(job_id)

    async def test_connection(self) -> bool:
        if not self.provider_ready():
            return False
        return await self.provider.test_connection()

    async def download(self, job_id: str) -> bytes:
        """Fetch the finished clip for a completed job."""
        job = self.registry.require(job_id)
        if job.status != JobStatus.COMPLETED or not job.video_url:
            raise NotFoundError("Video not found or not ready")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.download_timeout_seconds,
                follow_redirects=True,
            ) as client:
                response = await client.get(job.video_url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Video download failed", extra={"job_id": job_id, "error": str(exc)})
            raise UpstreamError(f"Failed to download video: {exc}") from exc

        return response.content
