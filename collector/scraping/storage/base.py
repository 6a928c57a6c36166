"""
Storage layer interfaces for collected products.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from collector.domain.products import (
    ChangeHistoryEntry,
    ExtractionResult,
    ProductQuery,
    ProductRecord,
    StoreStats,
    UpsertOutcome,
)


class ResultStore(ABC):
    """
    Storage abstraction for deduplicated product records.

    Records are keyed by normalized locator. Implementations must make the
    lookup-then-write in `upsert` atomic per key.
    """

    @abstractmethod
    def upsert(self, result: ExtractionResult) -> UpsertOutcome:
        """
        Create or update the record for `result.locator`. Raises
        `StoreWriteError` when the write cannot be committed.
        """

    @abstractmethod
    def query(self, query: ProductQuery) -> list[ProductRecord]:
        """
        Return stored records matching `query`.
        """

    @abstractmethod
    def get(self, product_id: str) -> ProductRecord | None:
        ...

    @abstractmethod
    def get_by_locator(self, locator: str) -> ProductRecord | None:
        ...

    @abstractmethod
    def delete(self, product_id: str) -> bool:
        ...

    @abstractmethod
    def history(self, product_id: str) -> list[ChangeHistoryEntry]:
        ...

    @abstractmethod
    def stats(self) -> StoreStats:
        ...
