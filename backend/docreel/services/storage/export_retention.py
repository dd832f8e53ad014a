"""
Export retention sweep.

Deletes export jobs whose start time is older than the retention window,
together with their working directories, to prevent unbounded disk growth.
"""

import asyncio
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from docreel.core import get_logger
from docreel.models import utc_now
from docreel.services.storage.job_registry import ExportJobRegistry

logger = get_logger(__name__, component="export_retention")

Clock = Callable[[], datetime]


class RetentionSweep:
    """Remove expired export jobs and their artifacts."""

    def __init__(
        self,
        registry: ExportJobRegistry,
        export_dir: Path,
        retention_hours: float = 24.0,
        interval_minutes: int = 60,
        enabled: bool = True,
        clock: Optional[Clock] = None,
    ):
        self.registry = registry
        self.export_dir = Path(export_dir)
        self.retention = timedelta(hours=retention_hours)
        self.interval_minutes = interval_minutes
        self.enabled = enabled
        self.clock = clock or utc_now

    def _remove_artifacts(self, job_id: str) -> bool:
        job_dir = self.export_dir / job_id
        if not job_dir.exists():
            return True
        try:
            shutil.rmtree(job_dir)
            return True
        except OSError as exc:
            logger.warning(
                "Failed to remove export directory",
                extra={"job_id": job_id, "path": str(job_dir), "error": str(exc)},
            )
            return False

    def run_once(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Run one sweep pass and return summary statistics."""
        summary = {"enabled": self.enabled, "deleted_jobs": 0, "errors": 0}
        if not self.enabled:
            return summary

        now = now or self.clock()
        cutoff = now - self.retention

        for job in self.registry.list_all():
            if job.start_time >= cutoff:
                continue

            with self.registry.lock:
                # Age is re-checked against the live record before deleting
                current = self.registry.get(job.id)
                if current is None or current.start_time >= cutoff:
                    continue
                if not self._remove_artifacts(job.id):
                    summary["errors"] += 1
                self.registry.delete(job.id)
                summary["deleted_jobs"] += 1

        logger.info("Export retention pass complete", extra=summary)
        return summary

    async def run_periodic(self) -> None:
        """Run the sweep in a periodic background loop."""
        if not self.enabled:
            logger.info("Export retention sweep disabled by environment")
            return

        interval_seconds = self.interval_minutes * 60
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("Export retention loop failed", extra={"error": str(exc)}, exc_info=True)
