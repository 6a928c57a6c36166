"""
collector/schemas/products.py

Response schemas for stored products and their change history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from collector.domain.products import ChangeHistoryEntry, ProductRecord, StoreStats


class ProductResponse(BaseModel):
    id: str
    locator: str
    locator_key: str
    platform: str
    name: str
    price: float | None = None
    currency: str | None = None
    images: list[str] = Field(default_factory=list)
    options: list[dict[str, Any]] = Field(default_factory=list)
    description: str = ""
    stock: str | None = None
    category: str = ""
    shipping: dict[str, Any] = Field(default_factory=dict)
    specs: dict[str, Any] = Field(default_factory=dict)
    videos: list[str] = Field(default_factory=list)
    collected_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: ProductRecord) -> ProductResponse:
        return cls(
            id=record.id,
            locator=record.locator,
            locator_key=record.locator_key,
            platform=record.platform,
            name=record.name,
            price=record.price,
            currency=record.currency,
            images=record.images,
            options=record.options,
            description=record.description,
            stock=record.stock,
            category=record.category,
            shipping=record.shipping,
            specs=record.specs,
            videos=record.videos,
            collected_at=record.collected_at,
            updated_at=record.updated_at,
        )


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    count: int = Field(..., ge=0)


class ChangeHistoryResponse(BaseModel):
    id: int | None = None
    product_id: str
    product_name: str
    old_price: float | None = None
    new_price: float | None = None
    old_stock: str | None = None
    new_stock: str | None = None
    change_kinds: list[str] = Field(default_factory=list)
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: ChangeHistoryEntry) -> ChangeHistoryResponse:
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            product_name=entry.product_name,
            old_price=entry.old_price,
            new_price=entry.new_price,
            old_stock=entry.old_stock,
            new_stock=entry.new_stock,
            change_kinds=sorted(entry.change_kinds),
            timestamp=entry.timestamp,
        )


class StoreStatsResponse(BaseModel):
    total: int = Field(..., ge=0)
    today: int = Field(..., ge=0)

    @classmethod
    def from_stats(cls, stats: StoreStats) -> StoreStatsResponse:
        return cls(total=stats.total, today=stats.today)
