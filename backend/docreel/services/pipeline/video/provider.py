"""
Video generation providers.

The stage talks to a ``VideoProvider``; the fal.ai implementation uses the
queue API (submit, then status/result by request id) so that polling stays
with the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import fal_client

from docreel.core import get_logger
from docreel.models import JobStatus

logger = get_logger(__name__, component="video_provider")

# Queue states reported by the provider
IN_QUEUE = "IN_QUEUE"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"
FAILED = "FAILED"

PROCESSING_PROGRESS_ESTIMATE = 50


@dataclass
class ProviderUpdate:
    """Provider-side view of one generation request."""
    status: str
    request_id: Optional[str] = None
    video_url: Optional[str] = None
    error: Optional[str] = None


def map_provider_status(status: str) -> Tuple[JobStatus, int]:
    """Map a provider queue state to (job status, progress)."""
    if status == IN_PROGRESS:
        return JobStatus.PROCESSING, PROCESSING_PROGRESS_ESTIMATE
    if status == COMPLETED:
        return JobStatus.COMPLETED, 100
    if status == FAILED:
        return JobStatus.FAILED, 0
    return JobStatus.PENDING, 0


def build_video_prompt(script: str, camera_direction: str, environment: str) -> str:
    return f"{script}. Camera: {camera_direction}. Setting: {environment}"


class VideoProvider(ABC):
    name: str = "video"

    @abstractmethod
    def is_configured(self) -> bool:
        """Credentials present; says nothing about reachability."""

    @abstractmethod
    async def submit(self, prompt: str, duration: int, aspect_ratio: str) -> ProviderUpdate:
        """Start a generation request."""

    @abstractmethod
    async def get_status(self, request_id: str) -> ProviderUpdate:
        """Fetch the current state of a request."""

    @abstractmethod
    async def test_connection(self) -> bool:
        """Whether the provider API answers."""


def _is_not_found(exc: Exception) -> bool:
    response = getattr(exc, "response", None)
    status_code = getattr(exc, "status_code", None) or getattr(response, "status_code", None)
    return status_code == 404 or "not found" in str(exc).lower()


class FalVideoProvider(VideoProvider):
    """fal.ai queue client for text-to-video models (default ``fal-ai/veo3``)."""

    name = "fal"

    def __init__(self, api_key: str, model: str = "fal-ai/veo3", timeout: float = 120.0):
        self.api_key = api_key
        self.model = model
        self.client = fal_client.AsyncClient(key=api_key, default_timeout=timeout) if api_key else None

    def is_configured(self) -> bool:
        return self.client is not None

    async def submit(self, prompt: str, duration: int, aspect_ratio: str) -> ProviderUpdate:
        if self.client is None:
            raise RuntimeError("FAL_KEY is not configured")

        handle = await self.client.submit(
            self.model,
            arguments={
                "prompt": prompt,
                "duration": duration,
                "aspect_ratio": aspect_ratio,
            },
        )
        logger.info("Video request submitted", extra={
            "model": self.model,
            "provider_request_id": handle.request_id,
            "duration": duration,
        })
        return ProviderUpdate(status=IN_QUEUE, request_id=handle.request_id)

    async def get_status(self, request_id: str) -> ProviderUpdate:
        if self.client is None:
            raise RuntimeError("FAL_KEY is not configured")

        status = await self.client.status(self.model, request_id)

        if isinstance(status, fal_client.InProgress):
            return ProviderUpdate(status=IN_PROGRESS, request_id=request_id)
        if not isinstance(status, fal_client.Completed):
            return ProviderUpdate(status=IN_QUEUE, request_id=request_id)

        error = getattr(status, "error", None)
        if error:
            return ProviderUpdate(status=FAILED, request_id=request_id, error=str(error))

        result = await self.client.result(self.model, request_id)
        video_url = ((result or {}).get("video") or {}).get("url")
        if not video_url:
            return ProviderUpdate(status=FAILED, request_id=request_id, error="Provider returned no video URL")
        return ProviderUpdate(status=COMPLETED, request_id=request_id, video_url=video_url)

    async def test_connection(self) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.status(self.model, "connection-check")
            return True
        except Exception as exc:
            # An unknown request id answered with 404 still proves the API is up
            if _is_not_found(exc):
                return True
            logger.warning("fal.ai connection check failed", extra={"error": str(exc)})
            return False
