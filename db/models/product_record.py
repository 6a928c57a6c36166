"""
db/models/product_record.py

Deduplicated product rows, one per normalized locator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, UTCDateTime


class ProductRecordRow(Base):
    __tablename__ = "product_records"

    # Integer surrogate key keeps insertion order queryable.
    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        comment="Public product id (UUID4 hex string)",
    )
    locator_key: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
        comment="Normalized product page locator",
    )
    locator: Mapped[str] = mapped_column(Text, nullable=False)
    platform: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(8), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stock: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="in_stock, out_of_stock, unknown",
    )
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipping: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    specs: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    videos: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    collected_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    changes = relationship(
        "ProductChangeRow",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ux_product_records_locator_key", "locator_key", unique=True),
        Index("ix_product_records_platform", "platform"),
        Index("ix_product_records_category", "category"),
        Index("ix_product_records_collected_at", "collected_at"),
    )
