"""
db/models/product_change.py

Append-only price and stock change history.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, UTCDateTime


class ProductChangeRow(Base):
    __tablename__ = "product_change_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("product_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    old_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    new_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    old_stock: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_stock: Mapped[str | None] = mapped_column(String(64), nullable=True)
    change_kinds: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="price_up, price_down, stock_change",
    )
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    product = relationship("ProductRecordRow", back_populates="changes")

    __table_args__ = (
        Index("ix_product_change_history_product_id", "product_id"),
        Index("ix_product_change_history_timestamp", "timestamp"),
    )
