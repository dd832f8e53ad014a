"""
Background polling of video jobs.

One asyncio task per job calls the stage's idempotent ``poll_status`` on a
fixed interval until the job is terminal or the attempt budget runs out.
Cancelling a watch only stops polling; the provider request keeps running.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from docreel.core import NotFoundError, get_logger, set_job_id
from docreel.models import VideoJob

logger = get_logger(__name__, component="video_watcher")

PollFn = Callable[[str], Awaitable[VideoJob]]


class VideoStatusWatcher:
    def __init__(self, poll: PollFn, interval_seconds: float = 5.0, max_attempts: int = 360):
        self._poll = poll
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self._tasks: Dict[str, asyncio.Task] = {}

    def watch(self, job_id: str) -> asyncio.Task:
        """Start polling a job. Watching an already watched job returns the existing task."""
        existing = self._tasks.get(job_id)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.create_task(self._run(job_id), name=f"video-watch-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda done: self._forget(job_id, done))
        return task

    def _forget(self, job_id: str, task: asyncio.Task) -> None:
        # A finished task must not drop a newer task registered under the same id
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]

    async def _run(self, job_id: str) -> Optional[VideoJob]:
        set_job_id(job_id)
        for attempt in range(1, self.max_attempts + 1):
            try:
                job = await self._poll(job_id)
            except NotFoundError:
                logger.info("Watched video job no longer exists", extra={"job_id": job_id})
                return None
            except Exception as exc:
                logger.warning("Video status poll failed", extra={
                    "job_id": job_id,
                    "attempt": attempt,
                    "error": str(exc),
                })
            else:
                if job.status.is_terminal():
                    logger.info("Video job reached terminal status", extra={
                        "job_id": job_id,
                        "status": job.status.value,
                        "attempts": attempt,
                    })
                    return job

            if attempt < self.max_attempts:
                await asyncio.sleep(self.interval_seconds)

        logger.warning("Stopped watching video job after max attempts", extra={
            "job_id": job_id,
            "max_attempts": self.max_attempts,
        })
        return None

    def is_watching(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        return task is not None and not task.done()

    def cancel(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def shutdown(self) -> None:
        """Cancel every watch and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
