"""
Pipeline settings

Tunables for the script, video and export stages. Values are read from the
environment when ``PipelineSettings.from_env()`` is called, so tests can
monkeypatch variables before building the service container.

=== PROVIDERS ===

Script generation:
    - LLM_PROVIDER=gemini : Google Gemini (requires GEMINI_API_KEY)
    - LLM_PROVIDER=ollama : local Ollama server (OLLAMA_HOST)
    - unset               : Gemini when GEMINI_API_KEY exists, else Ollama

Video generation:
    - FAL_KEY set   : fal.ai queue API (FAL_VIDEO_MODEL, default fal-ai/veo3)
    - FAL_KEY unset : deterministic mock progression (1% per second)
"""

import os
from dataclasses import dataclass

from docreel.core.runtime import env_bool, env_float, env_int

# Hard limits on generated narration
SCRIPT_SEGMENT_MAX_CHARS = 210
FALLBACK_SEGMENT_MAX_CHARS = 200
FALLBACK_MAX_SEGMENTS = 5
FALLBACK_TITLE_MAX_CHARS = 50

# Segmenter limits
HEADING_MAX_CHARS = 100
PARAGRAPH_CHUNK_MAX_CHARS = 1000
TITLE_SENTENCE_MAX_CHARS = 60
TITLE_PREFIX_CHARS = 50


@dataclass
class PipelineSettings:
    """Runtime configuration for the pipeline stages."""

    # Script stage
    llm_provider: str = ""
    script_model: str = "gemini-2.5-flash"
    script_temperature: float = 0.7
    script_timeout_seconds: float = 60.0

    # Video stage
    fal_key: str = ""
    fal_video_model: str = "fal-ai/veo3"
    video_default_duration: int = 5
    video_aspect_ratio: str = "16:9"
    video_poll_interval_seconds: float = 5.0
    video_poll_max_attempts: int = 360
    video_auto_watch: bool = True

    # Export stage
    export_retention_hours: float = 24.0
    export_sweep_interval_minutes: int = 60
    export_sweep_enabled: bool = True
    download_timeout_seconds: float = 120.0
    ffmpeg_timeout_seconds: float = 600.0
    intro_outro_seconds: float = 3.0
    music_volume: float = 0.15

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "").strip().lower(),
            script_model=os.getenv("SCRIPT_MODEL", "gemini-2.5-flash"),
            script_temperature=env_float("SCRIPT_TEMPERATURE", 0.7, 0.0),
            script_timeout_seconds=env_float("SCRIPT_TIMEOUT_SECONDS", 60.0, 1.0),
            fal_key=os.getenv("FAL_KEY", "").strip(),
            fal_video_model=os.getenv("FAL_VIDEO_MODEL", "fal-ai/veo3"),
            video_default_duration=env_int("VIDEO_DEFAULT_DURATION", 5, 1),
            video_aspect_ratio=os.getenv("VIDEO_ASPECT_RATIO", "16:9"),
            video_poll_interval_seconds=env_float("VIDEO_POLL_INTERVAL_SECONDS", 5.0, 0.1),
            video_poll_max_attempts=env_int("VIDEO_POLL_MAX_ATTEMPTS", 360, 1),
            video_auto_watch=env_bool("VIDEO_AUTO_WATCH", True),
            export_retention_hours=env_float("EXPORT_RETENTION_HOURS", 24.0, 0.01),
            export_sweep_interval_minutes=env_int("EXPORT_SWEEP_INTERVAL_MINUTES", 60, 1),
            export_sweep_enabled=env_bool("EXPORT_SWEEP_ENABLED", True),
            download_timeout_seconds=env_float("DOWNLOAD_TIMEOUT_SECONDS", 120.0, 1.0),
            ffmpeg_timeout_seconds=env_float("FFMPEG_TIMEOUT_SECONDS", 600.0, 1.0),
            intro_outro_seconds=env_float("INTRO_OUTRO_SECONDS", 3.0, 0.5),
            music_volume=env_float("MUSIC_VOLUME", 0.15, 0.0),
        )
