"""
collector/domain/batch.py

Domain models for batch collection runs.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone


class JobStatus:
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    FINISHED = frozenset({SUCCEEDED, FAILED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Job:
    """
    One locator scheduled inside a batch run.
    """

    locator: str
    status: str = JobStatus.PENDING
    enqueued_at: datetime = field(default_factory=_utcnow)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None
    platform: str | None = None
    product_id: str | None = None

    @property
    def finished(self) -> bool:
        return self.status in JobStatus.FINISHED


@dataclass
class BatchRun:
    """
    Mutable state of one batch execution.

    Only the orchestrator that created the run calls the transition methods.
    `completed_count` never decreases and never exceeds `total`, and no job
    enters `running` once `cancelled` is set.
    """

    jobs: list[Job]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    cancelled: bool = False
    completed_count: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @classmethod
    def from_locators(cls, locators: list[str]) -> "BatchRun":
        enqueued_at = _utcnow()
        return cls(jobs=[Job(locator=locator, enqueued_at=enqueued_at) for locator in locators])

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def succeeded(self) -> int:
        return sum(1 for job in self.jobs if job.status == JobStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return sum(1 for job in self.jobs if job.status == JobStatus.FAILED)

    @property
    def pending(self) -> int:
        return sum(1 for job in self.jobs if job.status == JobStatus.PENDING)

    @property
    def running(self) -> int:
        return sum(1 for job in self.jobs if job.status == JobStatus.RUNNING)

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    def cancel(self) -> bool:
        """
        Flag the run as cancelled. Returns False when it already was.
        """

        if self.cancelled:
            return False
        self.cancelled = True
        return True

    def start_job(self, index: int, *, platform: str | None = None) -> Job:
        if self.cancelled:
            raise RuntimeError(f"Batch run {self.id} is cancelled; job {index} cannot start.")
        job = self.jobs[index]
        if job.status != JobStatus.PENDING:
            raise RuntimeError(f"Job {index} is '{job.status}', expected 'pending'.")
        started = replace(job, status=JobStatus.RUNNING, started_at=_utcnow(), platform=platform)
        self.jobs[index] = started
        return started

    def set_platform(self, index: int, platform: str) -> None:
        self.jobs[index] = replace(self.jobs[index], platform=platform)

    def succeed_job(self, index: int, *, product_id: str | None = None) -> Job:
        return self._finish_job(index, status=JobStatus.SUCCEEDED, product_id=product_id)

    def fail_job(self, index: int, *, error: str) -> Job:
        return self._finish_job(index, status=JobStatus.FAILED, error=error)

    def close(self) -> None:
        if self.finished_at is None:
            self.finished_at = _utcnow()

    def _finish_job(
        self,
        index: int,
        *,
        status: str,
        error: str | None = None,
        product_id: str | None = None,
    ) -> Job:
        job = self.jobs[index]
        if job.status != JobStatus.RUNNING:
            raise RuntimeError(f"Job {index} is '{job.status}', expected 'running'.")
        if self.completed_count >= self.total:
            raise RuntimeError(f"Batch run {self.id} already completed every job.")
        finished = replace(
            job,
            status=status,
            finished_at=_utcnow(),
            error=error,
            product_id=product_id,
        )
        self.jobs[index] = finished
        self.completed_count += 1
        return finished


@dataclass(frozen=True)
class ProgressEvent:
    """
    Emitted after every finished job regardless of its outcome.
    """

    run_id: str
    current: int
    total: int
    label: str
    status: str
    error: str | None = None

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 100
        return int(self.current * 100 / self.total)


@dataclass(frozen=True)
class JobFailure:
    """
    One failed locator inside a batch summary.
    """

    locator: str
    error: str


@dataclass(frozen=True)
class BatchSummary:
    """
    Terminal outcome of one batch run.

    `skipped` counts jobs never dispatched because the run was cancelled, so
    `succeeded + failed + skipped == total` always holds.
    """

    run_id: str
    total: int
    succeeded: int
    failed: int
    skipped: int = 0
    cancelled: bool = False
    errors: list[JobFailure] = field(default_factory=list)

    @classmethod
    def from_run(cls, run: BatchRun) -> "BatchSummary":
        return cls(
            run_id=run.id,
            total=run.total,
            succeeded=run.succeeded,
            failed=run.failed,
            skipped=run.total - run.succeeded - run.failed,
            cancelled=run.cancelled,
            errors=[
                JobFailure(locator=job.locator, error=job.error or "unknown error")
                for job in run.jobs
                if job.status == JobStatus.FAILED
            ],
        )
