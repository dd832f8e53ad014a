"""
Export stage - stitches a session's chunk videos into one file.

An export is accepted only when every chunk of the session is video_ready
with a URL. Processing runs as a background task and moves the job through
pending -> processing -> completed | failed with non-decreasing progress.
"""

import asyncio
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from docreel.config import EXPORT_DIR, MUSIC_DIR, PipelineSettings
from docreel.core import (
    NotFoundError,
    ValidationError,
    get_logger,
    is_valid_id,
    sanitize_filename,
    set_job_id,
    validate_path_within_directory,
)
from docreel.models import ChunkStatus, ExportJob, ExportOptions, JobStatus, Session
from docreel.services.pipeline.video import is_mock_video_url
from docreel.services.storage import ExportJobRegistry, SessionStore

from .media import MediaToolkit

logger = get_logger(__name__, component="export_stage")

DOWNLOAD_URL_TEMPLATE = "/api/export/download/{export_id}"
MUSIC_EXTENSIONS = (".mp3", ".wav", ".m4a", ".aac", ".ogg")
OUTRO_TEXT = "Thanks for watching"

# Progress checkpoints
PROGRESS_STARTED = 10
PROGRESS_WORKDIR_READY = 20
PROGRESS_CLIPS_FETCHED = 50
PROGRESS_PLAYLIST_BUILT = 60
PROGRESS_BOOKENDS_READY = 70
PROGRESS_CONCATENATED = 90


class ExportStage:
    def __init__(
        self,
        store: SessionStore,
        registry: ExportJobRegistry,
        media: MediaToolkit,
        export_dir: Path = EXPORT_DIR,
        music_dir: Path = MUSIC_DIR,
        settings: Optional[PipelineSettings] = None,
    ):
        self.store = store
        self.registry = registry
        self.media = media
        self.export_dir = Path(export_dir)
        self.music_dir = Path(music_dir)
        self.settings = settings or PipelineSettings()
        self._tasks: Dict[str, asyncio.Task] = {}

    def validate_session(self, session_id: str) -> Session:
        """Raise unless every chunk of the session has a finished video."""
        session = self.store.get(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        if not session.chunks:
            raise ValidationError("Session has no chunks to export")

        unready = [
            chunk.id for chunk in session.chunks
            if chunk.status != ChunkStatus.VIDEO_READY or not chunk.video_url
        ]
        if unready:
            logger.info("Export rejected, videos not ready", extra={
                "session_id": session_id,
                "unready_chunks": len(unready),
            })
            raise ValidationError("Not all videos are ready for export")
        return session

    async def create_export(self, session_id: str, options: Optional[ExportOptions] = None) -> ExportJob:
        """Validate the session, register a pending job and start processing it."""
        self.validate_session(session_id)

        job = self.registry.add(ExportJob(session_id=session_id, options=options or ExportOptions()))
        task = asyncio.create_task(self.process_export(job.id), name=f"export-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda done: self._forget_task(job.id, done))

        logger.info("Export started", extra={
            "export_id": job.id,
            "session_id": session_id,
            "options": job.options.to_dict(),
        })
        return job

    def _forget_task(self, export_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(export_id) is task:
            del self._tasks[export_id]

    def _advance(self, export_id: str, progress: int) -> None:
        self.registry.update(export_id, lambda job: job.advance(progress))

    def resolve_music(self, track: str) -> Path:
        """Find a background track by name inside the music directory."""
        try:
            name = sanitize_filename(track)
        except ValueError as exc:
            raise ValidationError(f"Invalid background music name: {track}") from exc

        candidates = [self.music_dir / name]
        if not Path(name).suffix:
            candidates.extend(self.music_dir / f"{name}{ext}" for ext in MUSIC_EXTENSIONS)

        for candidate in candidates:
            if candidate.is_file() and validate_path_within_directory(candidate, self.music_dir):
                return candidate
        raise ValidationError(f"Background music not found: {track}")

    async def process_export(self, export_id: str) -> ExportJob:
        """Run every export step for a job. Failures are recorded on the job, never raised."""
        set_job_id(export_id)
        job = self.registry.require(export_id)
        work_dir = self.export_dir / export_id

        try:
            self._advance(export_id, PROGRESS_STARTED)
            session = self.store.get(job.session_id)
            if session is None:
                raise NotFoundError("Session not found")
            chunks = list(session.chunks)

            work_dir.mkdir(parents=True, exist_ok=True)
            self._advance(export_id, PROGRESS_WORKDIR_READY)

            clips: List[Path] = []
            for index, chunk in enumerate(chunks):
                if not chunk.video_url:
                    raise ValidationError(f"Chunk {chunk.id} has no video")
                destination = work_dir / f"clip_{index:03d}.mp4"
                if is_mock_video_url(chunk.video_url):
                    # Mock progression has no clip behind its URL
                    clips.append(await self.media.render_title_card(
                        chunk.title, destination, self.settings.video_default_duration,
                    ))
                else:
                    clips.append(await self.media.fetch(chunk.video_url, destination))
            self._advance(export_id, PROGRESS_CLIPS_FETCHED)

            playlist = list(clips)
            self._advance(export_id, PROGRESS_PLAYLIST_BUILT)

            seconds = self.settings.intro_outro_seconds
            if job.options.include_intro:
                intro = await self.media.render_title_card(session.file_name, work_dir / "intro.mp4", seconds)
                playlist.insert(0, intro)
            if job.options.include_outro:
                outro = await self.media.render_title_card(OUTRO_TEXT, work_dir / "outro.mp4", seconds)
                playlist.append(outro)
            self._advance(export_id, PROGRESS_BOOKENDS_READY)

            final_path = await self.media.concatenate(playlist, work_dir / "final_video.mp4")
            self._advance(export_id, PROGRESS_CONCATENATED)

            if job.options.background_music:
                music = self.resolve_music(job.options.background_music)
                final_path = await self.media.mix_background_music(
                    final_path,
                    music,
                    work_dir / "final_with_music.mp4",
                    self.settings.music_volume,
                )

            download_url = DOWNLOAD_URL_TEMPLATE.format(export_id=export_id)
            self.registry.update(export_id, lambda j: j.complete(str(final_path), download_url))
            logger.info("Export completed", extra={
                "export_id": export_id,
                "session_id": job.session_id,
                "clips": len(clips),
                "output_path": str(final_path),
            })
        except asyncio.CancelledError:
            self._fail(export_id, "Export cancelled", work_dir)
            raise
        except Exception as exc:
            logger.error("Export failed", extra={
                "export_id": export_id,
                "session_id": job.session_id,
                "error": str(exc),
            }, exc_info=True)
            self._fail(export_id, str(exc) or "Export processing failed", work_dir)

        return job

    def _fail(self, export_id: str, error: str, work_dir: Path) -> None:
        def mark_failed(job: ExportJob) -> None:
            if not job.status.is_terminal():
                job.fail(error)

        self.registry.update(export_id, mark_failed)
        if work_dir.exists():
            try:
                shutil.rmtree(work_dir)
            except OSError as exc:
                logger.warning("Failed to remove export directory", extra={
                    "export_id": export_id,
                    "path": str(work_dir),
                    "error": str(exc),
                })

    def get_job(self, export_id: str) -> ExportJob:
        return self.registry.require(export_id)

    def get_download_path(self, export_id: str) -> Path:
        if not is_valid_id(export_id):
            raise NotFoundError("Export not found or not completed")
        job = self.registry.get(export_id)
        if job is None or job.status != JobStatus.COMPLETED or not job.output_path:
            raise NotFoundError("Export not found or not completed")

        path = Path(job.output_path)
        if not path.is_file() or not validate_path_within_directory(path, self.export_dir):
            raise NotFoundError("Export file is no longer available")
        return path

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
