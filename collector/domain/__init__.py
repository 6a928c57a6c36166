"""
collector/domain package marker.
"""

from collector.domain.batch import (
    BatchRun,
    BatchSummary,
    Job,
    JobFailure,
    JobStatus,
    ProgressEvent,
)
from collector.domain.products import (
    ChangeHistoryEntry,
    ChangeKind,
    ExtractionResult,
    ProductQuery,
    ProductRecord,
    StockStatus,
    StoreStats,
    UpsertAction,
    UpsertOutcome,
    detect_change_kinds,
)

__all__ = [
    "BatchRun",
    "BatchSummary",
    "ChangeHistoryEntry",
    "ChangeKind",
    "ExtractionResult",
    "Job",
    "JobFailure",
    "JobStatus",
    "ProductQuery",
    "ProductRecord",
    "ProgressEvent",
    "StockStatus",
    "StoreStats",
    "UpsertAction",
    "UpsertOutcome",
    "detect_change_kinds",
]
