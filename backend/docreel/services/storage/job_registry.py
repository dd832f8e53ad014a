"""
Job registries - in-memory tracking of video and export jobs.
"""

from threading import RLock
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from docreel.core import NotFoundError, get_logger
from docreel.models import ExportJob, VideoJob

logger = get_logger(__name__, component="job_registry")

JobT = TypeVar("JobT", VideoJob, ExportJob)


class JobRegistry(Generic[JobT]):
    """Id-keyed job records guarded by a re-entrant lock."""

    def __init__(self, kind: str):
        self.kind = kind
        self._jobs: Dict[str, JobT] = {}
        self._lock = RLock()

    @property
    def lock(self) -> RLock:
        return self._lock

    def add(self, job: JobT) -> JobT:
        with self._lock:
            self._jobs[job.id] = job
        logger.info("Job registered", extra={"job_kind": self.kind, "job_id": job.id})
        return job

    def get(self, job_id: str) -> Optional[JobT]:
        with self._lock:
            return self._jobs.get(job_id)

    def require(self, job_id: str) -> JobT:
        job = self.get(job_id)
        if job is None:
            raise NotFoundError(f"{self.kind.capitalize()} job not found")
        return job

    def update(self, job_id: str, mutate: Callable[[JobT], None]) -> JobT:
        """Apply ``mutate`` to the job while holding the registry lock."""
        with self._lock:
            job = self.require(job_id)
            mutate(job)
            return job

    def delete(self, job_id: str) -> bool:
        with self._lock:
            removed = self._jobs.pop(job_id, None) is not None
        if removed:
            logger.info("Job deleted", extra={"job_kind": self.kind, "job_id": job_id})
        return removed

    def list_all(self) -> List[JobT]:
        with self._lock:
            return list(self._jobs.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


class VideoJobRegistry(JobRegistry[VideoJob]):
    def __init__(self):
        super().__init__("video")


class ExportJobRegistry(JobRegistry[ExportJob]):
    def __init__(self):
        super().__init__("export")
