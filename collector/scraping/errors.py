"""
Exceptions raised by the batch collection pipeline.

Caller misuse (`InvalidBatchError`, `BatchAlreadyRunningError`) is raised to
the submitter. `JobError` subclasses are fatal to one job only and are caught
at the orchestrator boundary.
"""

from __future__ import annotations


class CollectionError(Exception):
    """Base exception for product collection failures."""


class InvalidBatchError(CollectionError, ValueError):
    """Raised when a submitted locator list is empty or malformed."""


class BatchAlreadyRunningError(CollectionError):
    """Raised when a batch is submitted while another one is active."""

    def __init__(self, run_id: str) -> None:
        super().__init__(f"Batch run {run_id} is still active.")
        self.run_id = run_id


class JobError(CollectionError):
    """Base exception for failures scoped to one locator."""

    def __init__(self, message: str, *, locator: str) -> None:
        super().__init__(message)
        self.locator = locator


class ContextOpenError(JobError):
    """Raised when a browsing context cannot be created for a locator."""


class LoadTimeoutError(JobError):
    """Raised when a context does not signal ready before its deadline."""


class ExtractionError(JobError):
    """Raised when an extraction capability fails to produce a record."""


class StoreWriteError(JobError):
    """Raised when an extracted record cannot be persisted."""


class PlatformDisabledError(JobError):
    """Raised when a locator resolves to a platform disabled in settings."""
