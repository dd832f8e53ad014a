import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from docreel.config import PipelineSettings
from docreel.services.container import ServiceContainer, set_container
from docreel.services.llm import Completion, CompletionRequest, LLMProvider, ProviderType
from docreel.services.pipeline.export import MediaToolkit
from docreel.services.pipeline.video import IN_QUEUE, ProviderUpdate, VideoProvider


class FakeClock:
    """Settable clock for mock video progression and retention tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeLLMProvider(LLMProvider):
    provider_type = ProviderType.GEMINI

    def __init__(self, text: str = "", error: Optional[Exception] = None, delay: float = 0.0):
        self.text = text
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []

    async def _complete(self, request: CompletionRequest, model: str) -> Completion:
        self.prompts.append(request.prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return Completion(text=self.text, model=model, provider=self.provider_type)

    def is_configured(self) -> bool:
        return True

    async def ping(self) -> bool:
        return self.error is None


class FakeVideoProvider(VideoProvider):
    name = "fake"

    def __init__(self, submit_update: Optional[ProviderUpdate] = None, status_updates=None, submit_error=None):
        self.submit_update = submit_update or ProviderUpdate(status=IN_QUEUE, request_id="req-1")
        self.status_updates = list(status_updates or [])
        self.submit_error = submit_error
        self.prompts: List[str] = []

    def is_configured(self) -> bool:
        return True

    async def submit(self, prompt: str, duration: int, aspect_ratio: str) -> ProviderUpdate:
        self.prompts.append(prompt)
        if self.submit_error is not None:
            raise self.submit_error
        return self.submit_update

    async def get_status(self, request_id: str) -> ProviderUpdate:
        if len(self.status_updates) > 1:
            return self.status_updates.pop(0)
        return self.status_updates[0]

    async def test_connection(self) -> bool:
        return True


class FakeMediaToolkit(MediaToolkit):
    """Writes small marker files instead of running ffmpeg."""

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: List[str] = []
        self.concatenated: List[List[str]] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation == self.fail_on:
            raise RuntimeError(f"{operation} exploded")

    async def fetch(self, url: str, destination: Path) -> Path:
        self._check("fetch")
        destination.write_bytes(url.encode("utf-8"))
        return destination

    async def concatenate(self, inputs: Sequence[Path], output: Path) -> Path:
        self._check("concatenate")
        self.concatenated.append([p.name for p in inputs])
        output.write_bytes(b"".join(p.read_bytes() for p in inputs))
        return output

    async def render_title_card(self, text: str, output: Path, duration: float) -> Path:
        self._check("title_card")
        output.write_text(text, encoding="utf-8")
        return output

    async def mix_background_music(self, video: Path, music: Path, output: Path, volume: float) -> Path:
        self._check("music")
        output.write_bytes(video.read_bytes() + music.read_bytes())
        return output


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return PipelineSettings(
        script_timeout_seconds=1.0,
        video_poll_interval_seconds=0.01,
        video_poll_max_attempts=5,
        video_auto_watch=False,
        export_sweep_enabled=False,
    )


@pytest.fixture
def media():
    return FakeMediaToolkit()


@pytest.fixture
def container(tmp_path, settings, media, clock):
    """Container wired with fakes only; no model, no video provider, no ffmpeg."""
    music_dir = tmp_path / "music"
    music_dir.mkdir()
    built = ServiceContainer(
        settings=settings,
        llm_provider=None,
        video_provider=None,
        media=media,
        export_dir=tmp_path / "exports",
        music_dir=music_dir,
        clock=clock,
    )
    set_container(built)
    yield built
    set_container(None)
