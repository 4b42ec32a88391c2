# services/job_store.py

"""
Job store - in-memory registry of research jobs

Every method takes the store lock and returns without awaiting, so each call
is atomic for both the event loop and any worker threads. Reads hand back
deep copies; callers never hold a reference into live job state.
"""

import time
import uuid
import logging
import threading
from typing import Callable, Dict, Optional, Sequence

from insightscout.models.job import Job, JobState
from insightscout.models.research import CompanyResult

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"progress", "current_company", "status", "error"}


class JobStore:
    def __init__(
            self,
            retention_seconds: float = 3600.0,
            clock: Callable[[], float] = time.time
    ):
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    def create(self, companies: Sequence[str]) -> str:
        """Create a new job in the processing state"""
        if isinstance(companies, (str, bytes)):
            raise TypeError("companies must be a sequence of names, not a single string")
        companies = tuple(companies)
        if not companies:
            raise ValueError("Cannot create a job without companies")

        job_id = uuid.uuid4().hex
        now = self._clock()

        with self._lock:
            self._jobs[job_id] = Job(
                id=job_id,
                companies=companies,
                created_at=now,
                last_updated=now
            )

        logger.info(f"Created job {job_id} for {len(companies)} companies")
        return job_id

    def get(self, job_id: str) -> Optional[Job]:
        """Snapshot of a job, or None if it does not exist"""
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def is_halted(self, job_id: str) -> bool:
        """True when the job is gone, cancelled or otherwise terminal"""
        with self._lock:
            job = self._jobs.get(job_id)
            return job is None or job.is_cancelled or job.status.is_terminal

    def update(self, job_id: str, **patch) -> bool:
        """Apply a partial update to a job still in processing.

        Returns False when the job is gone or already terminal; the update is
        dropped silently in both cases.
        """
        unknown = set(patch) - _UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update job fields: {sorted(unknown)}")

        with self._lock:
            job = self._live_job(job_id)
            if job is None:
                return False

            if "progress" in patch:
                patch["progress"] = max(job.progress, patch["progress"])
            for field, value in patch.items():
                setattr(job, field, value)
            job.last_updated = self._clock()
            return True

    def append_result(self, job_id: str, result: CompanyResult, progress: int) -> bool:
        """Append one company result and advance progress together"""
        with self._lock:
            job = self._live_job(job_id)
            if job is None:
                return False

            if len(job.results) >= len(job.companies):
                raise RuntimeError(f"Job {job_id} already has a result for every company")

            job.results.append(result.model_copy(deep=True))
            job.progress = max(job.progress, progress)
            job.last_updated = self._clock()
            return True

    def complete(self, job_id: str) -> bool:
        """Mark job as completed"""
        with self._lock:
            job = self._live_job(job_id)
            if job is None:
                return False

            job.status = JobState.COMPLETED
            job.progress = 100
            job.last_updated = self._clock()

        logger.info(f"Job {job_id} completed")
        return True

    def fail(self, job_id: str, error: str) -> bool:
        """Mark job as failed, keeping whatever results it has"""
        with self._lock:
            job = self._live_job(job_id)
            if job is None:
                return False

            job.status = JobState.FAILED
            job.error = error
            job.last_updated = self._clock()

        logger.error(f"Job {job_id} failed: {error}")
        return True

    def cancel(self, job_id: str) -> bool:
        """Flag a job as cancelled. Returns False only for unknown jobs."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False

            if job.status.is_terminal:
                logger.debug(f"Cancel ignored for job {job_id} in state {job.status.value}")
                return True

            job.is_cancelled = True
            job.status = JobState.CANCELLED
            job.last_updated = self._clock()

        logger.info(f"Job {job_id} cancelled")
        return True

    def delete(self, job_id: str) -> bool:
        """Remove a job immediately"""
        with self._lock:
            removed = self._jobs.pop(job_id, None)

        if removed is not None:
            logger.info(f"Job {job_id} cleaned up")
        return removed is not None

    def sweep_expired(self) -> int:
        """Delete terminal jobs idle for longer than the retention window"""
        cutoff = self._clock() - self.retention_seconds

        with self._lock:
            expired = [
                jid for jid, job in self._jobs.items()
                if job.status.is_terminal and job.last_updated < cutoff
            ]
            for jid in expired:
                del self._jobs[jid]

        if expired:
            logger.info(f"Retention sweep removed {len(expired)} jobs")
        return len(expired)

    def active_count(self) -> int:
        """Number of jobs still processing"""
        with self._lock:
            return sum(1 for job in self._jobs.values() if not job.status.is_terminal)

    def _live_job(self, job_id: str) -> Optional[Job]:
        # Caller holds the lock.
        job = self._jobs.get(job_id)
        if job is None or job.status.is_terminal:
            return None
        return job
