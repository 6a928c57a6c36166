"""
collector/schemas package marker.
"""

from collector.schemas.collection import (
    BatchAcceptedResponse,
    BatchCancelResponse,
    BatchStatusResponse,
    BatchSubmitRequest,
    BatchSummaryResponse,
    JobFailureResponse,
    ProgressEventResponse,
)
from collector.schemas.products import (
    ChangeHistoryResponse,
    ProductListResponse,
    ProductResponse,
    StoreStatsResponse,
)

__all__ = [
    "BatchAcceptedResponse",
    "BatchCancelResponse",
    "BatchStatusResponse",
    "BatchSubmitRequest",
    "BatchSummaryResponse",
    "ChangeHistoryResponse",
    "JobFailureResponse",
    "ProductListResponse",
    "ProductResponse",
    "ProgressEventResponse",
    "StoreStatsResponse",
]
