"""
tests/test_result_store.py

Tests for SQLAlchemyResultStore against a SQLite database.

Coverage
--------
- Insert vs update keyed by normalized locator
- Preservation of id and collected_at
- Change history: price up/down, stock change, no-op updates
- Query filters, sorting and natural order
- get / get_by_locator / delete / history / stats
- Database failures surface as StoreWriteError
- Per-key locks do not accumulate
"""

from __future__ import annotations

import gc
import threading
from datetime import timezone

import pytest
from sqlalchemy.exc import OperationalError

from collector.domain.products import (
    ChangeKind,
    ExtractionResult,
    ProductQuery,
    StockStatus,
    UpsertAction,
)
from collector.scraping.errors import StoreWriteError
from collector.scraping.storage import SQLAlchemyResultStore

LOCATOR = "https://www.coupang.com/vp/products/100?itemId=5"


def _result(
    locator: str = LOCATOR,
    *,
    name: str = "Wireless Mouse",
    price: float | None = 19900.0,
    stock: str | None = StockStatus.IN_STOCK,
    platform: str = "coupang",
    category: str = "Electronics",
    description: str = "Silent click mouse",
) -> ExtractionResult:
    return ExtractionResult(
        locator=locator,
        platform=platform,
        name=name,
        price=price,
        stock=stock,
        category=category,
        description=description,
        images=["https://img.example.com/1.jpg"],
        options=[{"name": "color", "values": [{"value": "black"}]}],
        currency="KRW",
    )


# ---------------------------------------------------------------------------
# upsert
# ---------------------------------------------------------------------------


class TestUpsert:
    def test_first_upsert_creates(self, store: SQLAlchemyResultStore) -> None:
        outcome = store.upsert(_result())

        assert outcome.action == UpsertAction.CREATED
        assert outcome.created is True
        assert outcome.change is None
        record = outcome.record
        assert record.id == outcome.id
        assert record.locator_key == "https://www.coupang.com/vp/products/100?itemId=5"
        assert record.collected_at == record.updated_at
        assert record.collected_at.tzinfo is not None

    def test_second_upsert_updates_same_record(self, store: SQLAlchemyResultStore) -> None:
        created = store.upsert(_result())
        updated = store.upsert(_result(LOCATOR + "&utm_source=kakao#reviews", name="Mouse v2"))

        assert updated.action == UpsertAction.UPDATED
        assert updated.id == created.id
        assert updated.record.name == "Mouse v2"
        assert updated.record.collected_at == created.record.collected_at
        assert updated.record.updated_at >= created.record.updated_at
        assert len(store.query(ProductQuery())) == 1

    def test_identical_price_and_stock_records_no_change(self, store: SQLAlchemyResultStore) -> None:
        created = store.upsert(_result())
        updated = store.upsert(_result(name="Renamed"))

        assert updated.change is None
        assert store.history(created.id) == []

    def test_price_drop_records_price_down(self, store: SQLAlchemyResultStore) -> None:
        created = store.upsert(_result(price=20000.0))
        updated = store.upsert(_result(price=15000.0))

        assert updated.change is not None
        assert updated.change.change_kinds == frozenset({ChangeKind.PRICE_DOWN})
        assert updated.change.id is not None
        history = store.history(created.id)
        assert len(history) == 1
        entry = history[0]
        assert (entry.old_price, entry.new_price) == (20000.0, 15000.0)
        assert entry.product_name == "Wireless Mouse"
        assert entry.timestamp.tzinfo == timezone.utc

    def test_price_rise_with_stock_change(self, store: SQLAlchemyResultStore) -> None:
        created = store.upsert(_result(price=100.0, stock=StockStatus.IN_STOCK))
        store.upsert(_result(price=120.0, stock=StockStatus.OUT_OF_STOCK))

        (entry,) = store.history(created.id)
        assert entry.change_kinds == frozenset({ChangeKind.PRICE_UP, ChangeKind.STOCK_CHANGE})
        assert (entry.old_stock, entry.new_stock) == (StockStatus.IN_STOCK, StockStatus.OUT_OF_STOCK)

    def test_price_appearing_records_entry_without_direction(
        self,
        store: SQLAlchemyResultStore,
    ) -> None:
        created = store.upsert(_result(price=None))
        updated = store.upsert(_result(price=500.0))

        assert updated.change is not None
        assert updated.change.change_kinds == frozenset()
        assert len(store.history(created.id)) == 1

    def test_history_accumulates_in_order(self, store: SQLAlchemyResultStore) -> None:
        created = store.upsert(_result(price=100.0))
        store.upsert(_result(price=90.0))
        store.upsert(_result(price=95.0))

        kinds = [entry.change_kinds for entry in store.history(created.id)]
        assert kinds == [
            frozenset({ChangeKind.PRICE_DOWN}),
            frozenset({ChangeKind.PRICE_UP}),
        ]

    def test_stored_record_is_independent_of_input(self, store: SQLAlchemyResultStore) -> None:
        result = _result()
        outcome = store.upsert(result)
        result.images.append("https://img.example.com/mutated.jpg")

        assert store.get(outcome.id).images == ["https://img.example.com/1.jpg"]

    def test_concurrent_upserts_for_one_key(self, store: SQLAlchemyResultStore) -> None:
        outcomes = []
        errors = []

        def worker(price: float) -> None:
            try:
                outcomes.append(store.upsert(_result(price=price)))
            except StoreWriteError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(100.0 + index,)) for index in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sum(1 for outcome in outcomes if outcome.created) == 1
        assert len({outcome.id for outcome in outcomes}) == 1
        assert len(store.query(ProductQuery())) == 1

    def test_key_locks_are_released_after_upserts(self, store: SQLAlchemyResultStore) -> None:
        for index in range(20):
            store.upsert(_result(f"https://shop.example.com/p/{index}"))
        gc.collect()

        assert len(store._locks) == 0

    def test_database_failure_raises_store_write_error(self, session_factory) -> None:
        def broken_factory():
            session = session_factory()

            def fail(*args, **kwargs):
                raise OperationalError("SELECT", {}, Exception("database is locked"))

            session.scalar = fail
            return session

        store = SQLAlchemyResultStore(session_factory=broken_factory)

        with pytest.raises(StoreWriteError) as exc_info:
            store.upsert(_result())
        assert exc_info.value.locator == LOCATOR


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------


@pytest.fixture()
def seeded(store: SQLAlchemyResultStore) -> SQLAlchemyResultStore:
    store.upsert(
        _result(
            "https://shop.example.com/p/1",
            name="Blue Kettle",
            price=30000.0,
            platform="generic",
            category="Kitchen",
            description="Stainless steel",
        )
    )
    store.upsert(
        _result(
            "https://www.coupang.com/vp/products/2",
            name="Red Toaster",
            price=45000.0,
            platform="coupang",
            category="Kitchen",
            description="Two slots, blue light",
        )
    )
    store.upsert(
        _result(
            "https://item.gmarket.co.kr/Item?goodscode=3",
            name="Desk Lamp",
            price=12000.0,
            platform="gmarket",
            category="Living",
            description="LED 50% brighter",
        )
    )
    return store


class TestQuery:
    def test_natural_order_is_insertion_order(self, seeded: SQLAlchemyResultStore) -> None:
        names = [record.name for record in seeded.query(ProductQuery())]
        assert names == ["Blue Kettle", "Red Toaster", "Desk Lamp"]

    def test_update_keeps_natural_position(self, seeded: SQLAlchemyResultStore) -> None:
        seeded.upsert(
            _result(
                "https://shop.example.com/p/1",
                name="Blue Kettle",
                price=28000.0,
                platform="generic",
                category="Kitchen",
            )
        )
        names = [record.name for record in seeded.query(ProductQuery())]
        assert names[0] == "Blue Kettle"

    def test_platform_and_category_equality(self, seeded: SQLAlchemyResultStore) -> None:
        assert [r.name for r in seeded.query(ProductQuery(platform="coupang"))] == ["Red Toaster"]
        assert len(seeded.query(ProductQuery(category="Kitchen"))) == 2
        assert seeded.query(ProductQuery(category="kitchen")) == []

    def test_name_substring_is_case_insensitive(self, seeded: SQLAlchemyResultStore) -> None:
        assert [r.name for r in seeded.query(ProductQuery(name_contains="lamp"))] == ["Desk Lamp"]

    def test_description_substring(self, seeded: SQLAlchemyResultStore) -> None:
        results = seeded.query(ProductQuery(description_contains="steel"))
        assert [r.name for r in results] == ["Blue Kettle"]

    def test_search_matches_name_or_description(self, seeded: SQLAlchemyResultStore) -> None:
        names = [r.name for r in seeded.query(ProductQuery(search="blue"))]
        assert names == ["Blue Kettle", "Red Toaster"]

    def test_wildcards_are_literal(self, seeded: SQLAlchemyResultStore) -> None:
        assert [r.name for r in seeded.query(ProductQuery(search="50%"))] == ["Desk Lamp"]
        assert seeded.query(ProductQuery(search="%_%x")) == []

    def test_price_range(self, seeded: SQLAlchemyResultStore) -> None:
        names = [r.name for r in seeded.query(ProductQuery(min_price=12000, max_price=30000))]
        assert names == ["Blue Kettle", "Desk Lamp"]

    def test_sort_by_price(self, seeded: SQLAlchemyResultStore) -> None:
        ascending = [r.price for r in seeded.query(ProductQuery(sort_by="price"))]
        descending = [r.price for r in seeded.query(ProductQuery(sort_by="price", descending=True))]
        assert ascending == [12000.0, 30000.0, 45000.0]
        assert descending == [45000.0, 30000.0, 12000.0]

    def test_limit_and_offset(self, seeded: SQLAlchemyResultStore) -> None:
        page = seeded.query(ProductQuery(sort_by="name", limit=1, offset=1))
        assert [r.name for r in page] == ["Desk Lamp"]

    def test_unknown_sort_key_raises(self, seeded: SQLAlchemyResultStore) -> None:
        with pytest.raises(ValueError):
            seeded.query(ProductQuery(sort_by="rating"))


# ---------------------------------------------------------------------------
# Lookup, delete and stats
# ---------------------------------------------------------------------------


class TestLookupAndDelete:
    def test_get_and_get_by_locator(self, store: SQLAlchemyResultStore) -> None:
        outcome = store.upsert(_result())

        assert store.get(outcome.id).name == "Wireless Mouse"
        assert store.get_by_locator("https://WWW.coupang.com/vp/products/100?itemId=5&spm=x").id == outcome.id
        assert store.get("missing") is None
        assert store.get_by_locator("https://www.coupang.com/vp/products/999") is None

    def test_delete_removes_record_and_history(self, store: SQLAlchemyResultStore) -> None:
        outcome = store.upsert(_result(price=100.0))
        store.upsert(_result(price=80.0))

        assert store.delete(outcome.id) is True
        assert store.get(outcome.id) is None
        assert store.history(outcome.id) == []
        assert store.delete(outcome.id) is False

    def test_stats(self, seeded: SQLAlchemyResultStore) -> None:
        stats = seeded.stats()
        assert stats.total == 3
        assert stats.today == 3
