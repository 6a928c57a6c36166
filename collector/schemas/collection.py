"""
collector/schemas/collection.py

Request/response schemas for batch collection endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from collector.domain.batch import BatchRun, BatchSummary, ProgressEvent


class BatchSubmitRequest(BaseModel):
    """
    Locators to collect, in order. Duplicates are collected independently.
    """

    locators: list[str]
    delay_seconds: float | None = Field(
        default=None,
        ge=0,
        description="Override of the delay between jobs for this batch",
    )


class BatchAcceptedResponse(BaseModel):
    run_id: str
    total: int = Field(..., ge=0)
    status: str = "accepted"


class ProgressEventResponse(BaseModel):
    run_id: str
    current: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)
    label: str
    status: str
    error: str | None = None

    @classmethod
    def from_event(cls, event: ProgressEvent) -> ProgressEventResponse:
        return cls(
            run_id=event.run_id,
            current=event.current,
            total=event.total,
            percentage=event.percentage,
            label=event.label,
            status=event.status,
            error=event.error,
        )


class JobFailureResponse(BaseModel):
    locator: str
    error: str


class BatchSummaryResponse(BaseModel):
    run_id: str
    total: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    cancelled: bool
    errors: list[JobFailureResponse] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> BatchSummaryResponse:
        return cls(
            run_id=summary.run_id,
            total=summary.total,
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
            cancelled=summary.cancelled,
            errors=[
                JobFailureResponse(locator=item.locator, error=item.error)
                for item in summary.errors
            ],
        )


class BatchStatusResponse(BaseModel):
    """
    Latest known state of the current (or most recent) batch.
    """

    run_id: str | None = None
    running: bool = False
    cancelled: bool = False
    total: int = 0
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    pending: int = 0
    latest: ProgressEventResponse | None = None
    summary: BatchSummaryResponse | None = None

    @classmethod
    def build(
        cls,
        *,
        run: BatchRun | None,
        running: bool,
        latest: ProgressEvent | None,
        summary: BatchSummary | None,
    ) -> BatchStatusResponse:
        if run is None:
            return cls()
        return cls(
            run_id=run.id,
            running=running,
            cancelled=run.cancelled,
            total=run.total,
            completed=run.completed_count,
            succeeded=run.succeeded,
            failed=run.failed,
            pending=run.pending,
            latest=(
                ProgressEventResponse.from_event(latest)
                if latest is not None and latest.run_id == run.id
                else None
            ),
            summary=(
                BatchSummaryResponse.from_summary(summary)
                if summary is not None and summary.run_id == run.id
                else None
            ),
        )


class BatchCancelResponse(BaseModel):
    run_id: str
    cancelled: bool
