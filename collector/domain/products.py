"""
collector/domain/products.py

Domain models for extracted and persisted product records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class ChangeKind:
    PRICE_UP = "price_up"
    PRICE_DOWN = "price_down"
    STOCK_CHANGE = "stock_change"


class StockStatus:
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    UNKNOWN = "unknown"


class UpsertAction:
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class ExtractionResult:
    """
    Structured fields produced by an extraction capability for one page.
    """

    locator: str
    platform: str
    name: str
    price: float | None
    images: list[str] = field(default_factory=list)
    options: list[dict[str, Any]] = field(default_factory=list)
    description: str = ""
    stock: str | None = StockStatus.UNKNOWN
    category: str = ""
    collected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    currency: str | None = None
    shipping: dict[str, Any] = field(default_factory=dict)
    specs: dict[str, Any] = field(default_factory=dict)
    videos: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProductRecord:
    """
    Persisted product, keyed by normalized locator.
    """

    id: str
    locator_key: str
    locator: str
    platform: str
    name: str
    price: float | None
    images: list[str]
    options: list[dict[str, Any]]
    description: str
    stock: str | None
    category: str
    currency: str | None
    shipping: dict[str, Any]
    specs: dict[str, Any]
    videos: list[str]
    collected_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        record_id: str,
        locator_key: str,
        result: ExtractionResult,
        now: datetime,
    ) -> "ProductRecord":
        return cls(
            id=record_id,
            locator_key=locator_key,
            collected_at=now,
            updated_at=now,
            **_result_fields(result),
        )

    def merged_with(self, result: ExtractionResult, *, now: datetime) -> "ProductRecord":
        """
        Build the successor record: new values overwrite old ones, while `id`,
        `locator_key` and `collected_at` are preserved.
        """

        return ProductRecord(
            id=self.id,
            locator_key=self.locator_key,
            collected_at=self.collected_at,
            updated_at=now,
            **_result_fields(result),
        )


def _result_fields(result: ExtractionResult) -> dict[str, Any]:
    return {
        "locator": result.locator,
        "platform": result.platform,
        "name": result.name,
        "price": result.price,
        "images": list(result.images),
        "options": [dict(option) for option in result.options],
        "description": result.description,
        "stock": result.stock,
        "category": result.category,
        "currency": result.currency,
        "shipping": dict(result.shipping),
        "specs": dict(result.specs),
        "videos": list(result.videos),
    }


@dataclass(frozen=True)
class ChangeHistoryEntry:
    """
    Price or stock delta detected when an existing product was re-collected.
    """

    product_id: str
    product_name: str
    old_price: float | None
    new_price: float | None
    old_stock: str | None
    new_stock: str | None
    timestamp: datetime
    change_kinds: frozenset[str]
    id: int | None = None


def detect_change_kinds(
    *,
    old_price: float | None,
    new_price: float | None,
    old_stock: str | None,
    new_stock: str | None,
) -> frozenset[str]:
    """
    Classify the delta between two product versions.

    A price appearing or disappearing has no direction, so it yields no price
    kind even though the store still records the entry.
    """

    kinds: set[str] = set()
    if old_price is not None and new_price is not None:
        if new_price < old_price:
            kinds.add(ChangeKind.PRICE_DOWN)
        elif new_price > old_price:
            kinds.add(ChangeKind.PRICE_UP)
    if old_stock != new_stock:
        kinds.add(ChangeKind.STOCK_CHANGE)
    return frozenset(kinds)


@dataclass(frozen=True)
class UpsertOutcome:
    """
    Result of one create-or-update call against the result store.
    """

    action: str
    id: str
    record: ProductRecord
    change: ChangeHistoryEntry | None = None

    @property
    def created(self) -> bool:
        return self.action == UpsertAction.CREATED


@dataclass(frozen=True)
class ProductQuery:
    """
    Filters for listing stored products.

    Without `sort_by` products come back in insertion order.
    """

    platform: str | None = None
    category: str | None = None
    name_contains: str | None = None
    description_contains: str | None = None
    search: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort_by: str | None = None
    descending: bool = False
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class StoreStats:
    total: int
    today: int
