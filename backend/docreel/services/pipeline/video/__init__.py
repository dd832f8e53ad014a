"""Per-chunk video generation and status polling."""

from .provider import (
    IN_QUEUE,
    IN_PROGRESS,
    COMPLETED,
    FAILED,
    ProviderUpdate,
    VideoProvider,
    FalVideoProvider,
    build_video_prompt,
    map_provider_status,
)
from .stage import VideoStage, MOCK_VIDEO_URL_TEMPLATE, is_mock_video_url
from .watcher import VideoStatusWatcher

__all__ = [
    "IN_QUEUE",
    "IN_PROGRESS",
    "COMPLETED",
    "FAILED",
    "ProviderUpdate",
    "VideoProvider",
    "FalVideoProvider",
    "build_video_prompt",
    "map_provider_status",
    "VideoStage",
    "MOCK_VIDEO_URL_TEMPLATE",
    "is_mock_video_url",
    "VideoStatusWatcher",
]
