import asyncio

import pytest

from conftest import FakeMediaToolkit
from docreel.config import PipelineSettings
from docreel.core import NotFoundError, ValidationError
from docreel.models import Chunk, ChunkStatus, ExportJob, ExportOptions, JobStatus
from docreel.services.pipeline.export import DOWNLOAD_URL_TEMPLATE, ExportStage
from docreel.services.pipeline.video import MOCK_VIDEO_URL_TEMPLATE
from docreel.services.storage import ExportJobRegistry, InMemorySessionStore


def _ready_session(store, count=2, ready=True):
    chunks = [Chunk(title=f"Part {i}", content=f"content {i}") for i in range(count)]
    session_id = store.create("lecture.pdf", chunks)
    if ready:
        for i, chunk in enumerate(chunks):
            store.update_chunk(chunk.id, video_url=f"https://cdn/clip{i}.mp4", status=ChunkStatus.VIDEO_READY)
    return session_id


@pytest.fixture
def parts(tmp_path):
    store = InMemorySessionStore()
    registry = ExportJobRegistry()
    media = FakeMediaToolkit()
    music_dir = tmp_path / "music"
    music_dir.mkdir()
    stage = ExportStage(
        store,
        registry,
        media,
        export_dir=tmp_path / "exports",
        music_dir=music_dir,
        settings=PipelineSettings(),
    )
    return stage, store, registry, media


def _register(registry, session_id, **options):
    return registry.add(ExportJob(session_id=session_id, options=ExportOptions(**options)))


class TestValidateSession:
    def test_unknown_session(self, parts):
        stage, *_ = parts
        with pytest.raises(NotFoundError):
            stage.validate_session("missing")

    def test_empty_session(self, parts):
        stage, store, *_ = parts
        session_id = store.create("empty.txt", [])
        with pytest.raises(ValidationError, match="no chunks"):
            stage.validate_session(session_id)

    def test_unready_videos_rejected(self, parts):
        stage, store, *_ = parts
        session_id = _ready_session(store, ready=False)
        with pytest.raises(ValidationError, match="Not all videos are ready"):
            stage.validate_session(session_id)

    @pytest.mark.asyncio
    async def test_rejected_export_creates_no_job(self, parts):
        stage, store, registry, _ = parts
        session_id = _ready_session(store, ready=False)
        with pytest.raises(ValidationError):
            await stage.create_export(session_id)
        assert len(registry) == 0


class TestProcessExport:
    @pytest.mark.asyncio
    async def test_completed_export(self, parts):
        stage, store, registry, media = parts
        session_id = _ready_session(store)
        job = _register(registry, session_id)

        await stage.process_export(job.id)

        assert job.status == JobStatus.COMPLETED
        assert job.progress == 100
        assert job.download_url == DOWNLOAD_URL_TEMPLATE.format(export_id=job.id)
        assert job.completed_at is not None
        assert media.concatenated == [["clip_000.mp4", "clip_001.mp4"]]

        path = stage.get_download_path(job.id)
        assert path.name == "final_video.mp4"
        assert path.read_bytes() == b"https://cdn/clip0.mp4https://cdn/clip1.mp4"

    @pytest.mark.asyncio
    async def test_mock_clips_become_placeholder_cards(self, parts):
        stage, store, registry, media = parts
        chunks = [Chunk(title="Opening", content="a"), Chunk(title="Closing", content="b")]
        session_id = store.create("lecture.pdf", chunks)
        store.update_chunk(chunks[0].id, video_url=MOCK_VIDEO_URL_TEMPLATE.format(job_id="j0"), status=ChunkStatus.VIDEO_READY)
        store.update_chunk(chunks[1].id, video_url="https://cdn/real.mp4", status=ChunkStatus.VIDEO_READY)
        job = _register(registry, session_id)

        await stage.process_export(job.id)

        assert job.status == JobStatus.COMPLETED
        assert media.calls[:2] == ["title_card", "fetch"]
        assert stage.get_download_path(job.id).read_bytes() == b"Openinghttps://cdn/real.mp4"

    @pytest.mark.asyncio
    async def test_progress_never_decreases(self, parts, monkeypatch):
        stage, store, registry, _ = parts
        job = _register(registry, _ready_session(store))

        seen = []
        original_update = registry.update

        def recording_update(job_id, mutate):
            updated = original_update(job_id, mutate)
            seen.append(updated.progress)
            return updated

        monkeypatch.setattr(registry, "update", recording_update)
        await stage.process_export(job.id)

        assert seen == sorted(seen)
        assert seen[-1] == 100

    @pytest.mark.asyncio
    async def test_intro_and_outro_wrap_clips(self, parts):
        stage, store, registry, media = parts
        job = _register(registry, _ready_session(store), include_intro=True, include_outro=True)

        await stage.process_export(job.id)

        assert media.concatenated == [["intro.mp4", "clip_000.mp4", "clip_001.mp4", "outro.mp4"]]
        work_dir = stage.export_dir / job.id
        assert (work_dir / "intro.mp4").read_text(encoding="utf-8") == "lecture.pdf"
        assert (work_dir / "outro.mp4").read_text(encoding="utf-8") == "Thanks for watching"

    @pytest.mark.asyncio
    async def test_background_music(self, parts):
        stage, store, registry, media = parts
        (stage.music_dir / "calm.mp3").write_bytes(b"music")
        job = _register(registry, _ready_session(store), background_music="calm")

        await stage.process_export(job.id)

        assert job.status == JobStatus.COMPLETED
        assert "music" in media.calls
        assert stage.get_download_path(job.id).name == "final_with_music.mp4"

    @pytest.mark.asyncio
    async def test_missing_music_fails_and_cleans_up(self, parts):
        stage, store, registry, _ = parts
        job = _register(registry, _ready_session(store), background_music="../secret")

        await stage.process_export(job.id)

        assert job.status == JobStatus.FAILED
        assert "Background music not found" in job.error
        assert not (stage.export_dir / job.id).exists()

    @pytest.mark.asyncio
    async def test_media_failure_marks_job_failed(self, parts):
        stage, store, registry, media = parts
        media.fail_on = "concatenate"
        job = _register(registry, _ready_session(store))

        await stage.process_export(job.id)

        assert job.status == JobStatus.FAILED
        assert job.error == "concatenate exploded"
        assert job.download_url is None
        assert not (stage.export_dir / job.id).exists()
        with pytest.raises(NotFoundError):
            stage.get_download_path(job.id)


class TestBackgroundTasks:
    @pytest.mark.asyncio
    async def test_create_export_runs_in_background(self, parts):
        stage, store, registry, _ = parts
        job = await stage.create_export(_ready_session(store), ExportOptions(include_outro=True))

        assert job.status in (JobStatus.PENDING, JobStatus.PROCESSING)
        for _ in range(100):
            if job.status.is_terminal():
                break
            await asyncio.sleep(0.01)

        assert stage.get_job(job.id).status == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_shutdown_cancels_running_export(self, parts):
        stage, store, registry, _ = parts
        started = asyncio.Event()

        class BlockingMedia(FakeMediaToolkit):
            async def fetch(self, url, destination):
                started.set()
                await asyncio.Event().wait()

        stage.media = BlockingMedia()
        job = await stage.create_export(_ready_session(store))
        await asyncio.wait_for(started.wait(), timeout=1)

        await stage.shutdown()

        assert job.status == JobStatus.FAILED
        assert job.error == "Export cancelled"
        assert not (stage.export_dir / job.id).exists()

    @pytest.mark.asyncio
    async def test_finished_tasks_are_forgotten(self, parts):
        stage, store, *_ = parts
        job = await stage.create_export(_ready_session(store))
        task = stage._tasks[job.id]
        await task
        await asyncio.sleep(0)
        assert job.id not in stage._tasks

        newer = asyncio.create_task(asyncio.sleep(60))
        stage._tasks[job.id] = newer
        stage._forget_task(job.id, task)
        assert stage._tasks[job.id] is newer

        await stage.shutdown()
        assert newer.cancelled()

    def test_unknown_export(self, parts):
        stage, *_ = parts
        with pytest.raises(NotFoundError):
            stage.get_job("missing")
        with pytest.raises(NotFoundError):
            stage.get_download_path("missing")
