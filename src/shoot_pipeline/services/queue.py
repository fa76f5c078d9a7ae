"""Delayed processing queue for editor returns."""

import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Protocol
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)

PROCESS_EDITOR_RETURN = "process_editor_return"


class QueueJobStatus(StrEnum):
    """Lifecycle of a queued job."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class QueueJob:
    """A unit of deferred work."""

    id: UUID
    shoot_id: UUID
    job_type: str
    scheduled_for: datetime
    payload: dict[str, str] = field(default_factory=dict)
    status: QueueJobStatus = QueueJobStatus.PENDING
    error: str | None = None
    finished_at: datetime | None = None


class ProcessingQueue(Protocol):
    """Interface to whatever runs deferred work."""

    def schedule(
        self,
        shoot_id: UUID,
        job_type: str,
        delay: timedelta,
        payload: dict[str, str] | None = None,
    ) -> QueueJob:
        """Queue a job to run after a delay."""

    def due_jobs(self, now: datetime | None = None) -> list[QueueJob]:
        """Return pending jobs whose scheduled time has passed."""

    def mark_completed(self, job_id: UUID) -> None:
        """Record a successful run."""

    def mark_failed(self, job_id: UUID, error: str) -> None:
        """Record a failed run."""

    def get_job(self, job_id: UUID) -> QueueJob | None:
        """Return a job by id."""

    def complete_pending(self, shoot_id: UUID, job_type: str) -> list[UUID]:
        """Mark every pending job of a type for a shoot as completed."""

    def prune(self, finished_before: datetime) -> int:
        """Drop jobs that finished before a cutoff and return how many."""


@dataclass
class InMemoryProcessingQueue:
    """Process-local queue, drained through the admin route."""

    jobs: dict[UUID, QueueJob] = field(default_factory=dict)

    def schedule(
        self,
        shoot_id: UUID,
        job_type: str,
        delay: timedelta,
        payload: dict[str, str] | None = None,
    ) -> QueueJob:
        job = QueueJob(
            id=uuid4(),
            shoot_id=shoot_id,
            job_type=job_type,
            scheduled_for=datetime.now(tz=UTC) + delay,
            payload=payload or {},
        )
        self.jobs[job.id] = job
        logger.info(
            "Scheduled %s for shoot %s at %s",
            job_type,
            shoot_id,
            job.scheduled_for.isoformat(),
        )
        return job

    def due_jobs(self, now: datetime | None = None) -> list[QueueJob]:
        cutoff = now or datetime.now(tz=UTC)
        due = [
            job
            for job in self.jobs.values()
            if job.status == QueueJobStatus.PENDING and job.scheduled_for <= cutoff
        ]
        return sorted(due, key=lambda job: job.scheduled_for)

    def mark_completed(self, job_id: UUID) -> None:
        self._finish(job_id, QueueJobStatus.COMPLETED, None)

    def mark_failed(self, job_id: UUID, error: str) -> None:
        logger.warning("Queue job %s failed: %s", job_id, error)
        self._finish(job_id, QueueJobStatus.FAILED, error)

    def _finish(
        self, job_id: UUID, status: QueueJobStatus, error: str | None
    ) -> None:
        job = self.jobs.get(job_id)
        if job is None:
            return
        self.jobs[job_id] = replace(
            job, status=status, error=error, finished_at=datetime.now(tz=UTC)
        )

    def get_job(self, job_id: UUID) -> QueueJob | None:
        return self.jobs.get(job_id)

    def complete_pending(self, shoot_id: UUID, job_type: str) -> list[UUID]:
        settled = [
            job.id
            for job in self.jobs.values()
            if job.shoot_id == shoot_id
            and job.job_type == job_type
            and job.status == QueueJobStatus.PENDING
        ]
        for job_id in settled:
            self._finish(job_id, QueueJobStatus.COMPLETED, None)
        if settled:
            logger.info(
                "Settled %d pending %s job(s) for shoot %s",
                len(settled),
                job_type,
                shoot_id,
            )
        return settled

    def prune(self, finished_before: datetime) -> int:
        stale = [
            job.id
            for job in self.jobs.values()
            if job.finished_at is not None and job.finished_at < finished_before
        ]
        for job_id in stale:
            del self.jobs[job_id]
        return len(stale)
