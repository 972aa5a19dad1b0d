"""Named scheduled jobs, addressed by the external timer facility."""

import threading
from typing import Optional

from ..logging.config import get_scheduler_logger
from .core import ScheduledJob, TickResult

logger = get_scheduler_logger(__name__)


class SchedulerCore:
    """Holds scheduled jobs and dispatches ticks to them by name."""

    def __init__(self) -> None:
        self._jobs: dict[str, ScheduledJob] = {}
        self._lock = threading.Lock()

    def register_job(self, job: ScheduledJob) -> None:
        with self._lock:
            if job.name in self._jobs:
                raise ValueError(f"Job already registered: {job.name}")
            self._jobs[job.name] = job
        logger.info("Registered scheduled job", job_name=job.name)

    def unregister_job(self, job_name: str) -> bool:
        with self._lock:
            removed = self._jobs.pop(job_name, None)
        return removed is not None

    def get_job(self, job_name: str) -> Optional[ScheduledJob]:
        with self._lock:
            return self._jobs.get(job_name)

    @property
    def jobs(self) -> list[str]:
        with self._lock:
            return sorted(self._jobs)

    def schedule_tick(self, job_name: str) -> Optional[TickResult]:
        """
        Entry point for the timer facility.

        Returns:
            The tick outcome, or None if no job is registered under ``job_name``
        """
        job = self.get_job(job_name)
        if job is None:
            logger.warning("Tick for unknown job ignored", job_name=job_name)
            return None
        return job.tick()

    def initialize(self) -> dict[str, Optional[TickResult]]:
        """Warm-start every registered job."""
        with self._lock:
            jobs = list(self._jobs.values())
        return {job.name: job.initialize() for job in jobs}
