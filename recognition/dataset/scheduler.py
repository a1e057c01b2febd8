"""
Dataset Refresh Scheduler - APScheduler job that keeps the reference
snapshot in step with the datasets table.

Uploads through this process refresh the snapshot immediately; the
periodic job picks up datasets written by other instances or by the admin
dashboard directly.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from .reference_set import ReferenceSet, DatasetSource

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh_reference_set"


class DatasetRefreshScheduler:
    """Periodically reloads the reference set from the dataset store."""

    def __init__(self, reference_set: ReferenceSet, store: DatasetSource, interval_seconds: int):
        self.reference_set = reference_set
        self.store = store
        self.interval_seconds = interval_seconds

        self.scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults={
                'coalesce': True,  # Combine missed runs into one
                'max_instances': 1,
                'misfire_grace_time': 60
            }
        )
        self.scheduler.add_listener(
            self._job_executed_listener,
            EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
        )

        self._running = False
        self.last_entry_count: Optional[int] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    def start(self):
        """Start the scheduler and register the refresh job; no-op when disabled."""
        if self._running or not self.enabled:
            return

        self.scheduler.add_job(
            self.refresh,
            'interval',
            seconds=self.interval_seconds,
            id=REFRESH_JOB_ID,
            replace_existing=True
        )
        self.scheduler.start()
        self._running = True
        logger.info(f"Dataset refresh scheduled every {self.interval_seconds}s")

    def stop(self):
        """Stop the scheduler."""
        if self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Dataset refresh scheduler stopped")

    def refresh(self) -> int:
        """Reload the snapshot once."""
        self.last_entry_count = self.reference_set.refresh(self.store)
        return self.last_entry_count

    def get_job_info(self) -> dict:
        """Status of the refresh job for the health endpoint."""
        job = self.scheduler.get_job(REFRESH_JOB_ID) if self._running else None
        return {
            "running": self._running,
            "interval_seconds": self.interval_seconds,
            "next_run_time": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "last_entry_count": self.last_entry_count
        }

    def _job_executed_listener(self, event):
        if event.exception:
            logger.error(f"Dataset refresh job failed: {event.exception}")
        else:
            logger.debug(f"Dataset refresh job completed: {event.retval} entries")
