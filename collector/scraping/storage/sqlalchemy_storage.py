"""
SQLAlchemy-backed result store.
"""

from __future__ import annotations

import logging
import threading
import uuid
import weakref
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, time, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from collector.domain.products import (
    ChangeHistoryEntry,
    ExtractionResult,
    ProductQuery,
    ProductRecord,
    StoreStats,
    UpsertAction,
    UpsertOutcome,
    detect_change_kinds,
)
from collector.scraping.errors import StoreWriteError
from collector.scraping.locators import normalize_locator
from collector.scraping.logging_utils import log_event
from collector.scraping.storage.base import ResultStore
from db.models import ProductChangeRow, ProductRecordRow

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": ProductRecordRow.name,
    "price": ProductRecordRow.price,
    "platform": ProductRecordRow.platform,
    "category": ProductRecordRow.category,
    "collected_at": ProductRecordRow.collected_at,
    "updated_at": ProductRecordRow.updated_at,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLAlchemyResultStore(ResultStore):
    """
    Persist product records and their change history through SQLAlchemy.

    Every call opens its own session from `session_factory`, so one store can
    be shared by the event loop and the worker threads that run writes.
    """

    def __init__(self, *, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        # Entries vanish once no upsert holds the lock.
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def upsert(self, result: ExtractionResult) -> UpsertOutcome:
        locator_key = normalize_locator(result.locator)
        with self._lock_for(locator_key):
            session = self._session_factory()
            try:
                row = session.scalar(
                    select(ProductRecordRow).where(ProductRecordRow.locator_key == locator_key)
                )
                now = _utcnow()
                if row is None:
                    return self._insert(session, locator_key=locator_key, result=result, now=now)
                return self._update(session, row=row, result=result, now=now)
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreWriteError(f"Failed to store product: {exc}", locator=result.locator) from exc
            finally:
                session.close()

    def query(self, query: ProductQuery) -> list[ProductRecord]:
        statement = select(ProductRecordRow)

        if query.platform:
            statement = statement.where(ProductRecordRow.platform == query.platform)
        if query.category:
            statement = statement.where(ProductRecordRow.category == query.category)
        if query.name_contains:
            statement = statement.where(_contains(ProductRecordRow.name, query.name_contains))
        if query.description_contains:
            statement = statement.where(
                _contains(ProductRecordRow.description, query.description_contains)
            )
        if query.search:
            statement = statement.where(
                or_(
                    _contains(ProductRecordRow.name, query.search),
                    _contains(ProductRecordRow.description, query.search),
                )
            )
        if query.min_price is not None:
            statement = statement.where(ProductRecordRow.price >= query.min_price)
        if query.max_price is not None:
            statement = statement.where(ProductRecordRow.price <= query.max_price)

        if query.sort_by:
            column = SORT_COLUMNS.get(query.sort_by)
            if column is None:
                allowed = ", ".join(sorted(SORT_COLUMNS))
                raise ValueError(f"Unknown sort key '{query.sort_by}'. Allowed keys: {allowed}.")
            statement = statement.order_by(
                column.desc() if query.descending else column.asc(),
                ProductRecordRow.pk.asc(),
            )
        else:
            statement = statement.order_by(ProductRecordRow.pk.asc())

        if query.offset:
            statement = statement.offset(query.offset)
        if query.limit is not None:
            statement = statement.limit(query.limit)

        with self._session_factory() as session:
            return [_record_from_row(row) for row in session.scalars(statement)]

    def get(self, product_id: str) -> ProductRecord | None:
        with self._session_factory() as session:
            row = session.scalar(select(ProductRecordRow).where(ProductRecordRow.id == product_id))
            return _record_from_row(row) if row is not None else None

    def get_by_locator(self, locator: str) -> ProductRecord | None:
        locator_key = normalize_locator(locator)
        with self._session_factory() as session:
            row = session.scalar(
                select(ProductRecordRow).where(ProductRecordRow.locator_key == locator_key)
            )
            return _record_from_row(row) if row is not None else None

    def delete(self, product_id: str) -> bool:
        with self._session_factory() as session:
            row = session.scalar(select(ProductRecordRow).where(ProductRecordRow.id == product_id))
            if row is None:
                return False
            try:
                session.delete(row)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
            return True

    def history(self, product_id: str) -> list[ChangeHistoryEntry]:
        statement = (
            select(ProductChangeRow)
            .where(ProductChangeRow.product_id == product_id)
            .order_by(ProductChangeRow.id.asc())
        )
        with self._session_factory() as session:
            return [_change_from_row(row) for row in session.scalars(statement)]

    def stats(self) -> StoreStats:
        start_of_day = datetime.combine(_utcnow().date(), time.min, tzinfo=timezone.utc)
        with self._session_factory() as session:
            total = session.scalar(select(func.count()).select_from(ProductRecordRow)) or 0
            today = (
                session.scalar(
                    select(func.count())
                    .select_from(ProductRecordRow)
                    .where(ProductRecordRow.collected_at >= start_of_day)
                )
                or 0
            )
        return StoreStats(total=int(total), today=int(today))

    def _insert(
        self,
        session: Session,
        *,
        locator_key: str,
        result: ExtractionResult,
        now: datetime,
    ) -> UpsertOutcome:
        record = ProductRecord.create(
            record_id=str(uuid.uuid4()),
            locator_key=locator_key,
            result=result,
            now=now,
        )
        row = ProductRecordRow(id=record.id, locator_key=locator_key)
        _apply_record(row, record)
        session.add(row)
        session.commit()
        log_event(
            logger,
            logging.INFO,
            "product_created",
            product_id=record.id,
            locator=locator_key,
            platform=record.platform,
        )
        return UpsertOutcome(action=UpsertAction.CREATED, id=record.id, record=record)

    def _update(
        self,
        session: Session,
        *,
        row: ProductRecordRow,
        result: ExtractionResult,
        now: datetime,
    ) -> UpsertOutcome:
        previous = _record_from_row(row)
        record = previous.merged_with(result, now=now)
        _apply_record(row, record)

        change: ChangeHistoryEntry | None = None
        change_row: ProductChangeRow | None = None
        if previous.price != record.price or previous.stock != record.stock:
            change = ChangeHistoryEntry(
                product_id=record.id,
                product_name=record.name,
                old_price=previous.price,
                new_price=record.price,
                old_stock=previous.stock,
                new_stock=record.stock,
                timestamp=now,
                change_kinds=detect_change_kinds(
                    old_price=previous.price,
                    new_price=record.price,
                    old_stock=previous.stock,
                    new_stock=record.stock,
                ),
            )
            change_row = ProductChangeRow(
                product_id=change.product_id,
                product_name=change.product_name,
                old_price=change.old_price,
                new_price=change.new_price,
                old_stock=change.old_stock,
                new_stock=change.new_stock,
                change_kinds=sorted(change.change_kinds),
                timestamp=change.timestamp,
            )
            session.add(change_row)

        session.commit()
        log_event(
            logger,
            logging.INFO,
            "product_updated",
            product_id=record.id,
            locator=record.locator_key,
            platform=record.platform,
        )
        if change is not None and change_row is not None:
            change = replace(change, id=change_row.id)
            log_event(
                logger,
                logging.INFO,
                "product_change_recorded",
                product_id=record.id,
                old_price=change.old_price,
                new_price=change.new_price,
                old_stock=change.old_stock,
                new_stock=change.new_stock,
                change_kinds=sorted(change.change_kinds),
            )
        return UpsertOutcome(action=UpsertAction.UPDATED, id=record.id, record=record, change=change)

    def _lock_for(self, locator_key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(locator_key)
            if lock is None:
                lock = threading.Lock()
                self._locks[locator_key] = lock
            return lock


def _contains(column, value: str):
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _apply_record(row: ProductRecordRow, record: ProductRecord) -> None:
    row.locator = record.locator
    row.platform = record.platform
    row.name = record.name
    row.price = record.price
    row.currency = record.currency
    row.images = list(record.images)
    row.options = [dict(option) for option in record.options]
    row.description = record.description
    row.stock = record.stock
    row.category = record.category
    row.shipping = dict(record.shipping)
    row.specs = dict(record.specs)
    row.videos = list(record.videos)
    row.collected_at = record.collected_at
    row.updated_at = record.updated_at


def _record_from_row(row: ProductRecordRow) -> ProductRecord:
    return ProductRecord(
        id=row.id,
        locator_key=row.locator_key,
        locator=row.locator,
        platform=row.platform,
        name=row.name or "",
        price=row.price,
        images=list(row.images or []),
        options=[dict(option) for option in row.options or []],
        description=row.description or "",
        stock=row.stock,
        category=row.category or "",
        currency=row.currency,
        shipping=dict(row.shipping or {}),
        specs=dict(row.specs or {}),
        videos=list(row.videos or []),
        collected_at=row.collected_at,
        updated_at=row.updated_at,
    )


def _change_from_row(row: ProductChangeRow) -> ChangeHistoryEntry:
    return ChangeHistoryEntry(
        id=row.id,
        product_id=row.product_id,
        product_name=row.product_name or "",
        old_price=row.old_price,
        new_price=row.new_price,
        old_stock=row.old_stock,
        new_stock=row.new_stock,
        timestamp=row.timestamp,
        change_kinds=frozenset(row.change_kinds or []),
    )
