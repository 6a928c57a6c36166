"""
Shared fixtures: a throwaway SQLite product store per test.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

import db.models  # noqa: F401
from collector.scraping.storage import SQLAlchemyResultStore
from db.base import Base
from db.session import create_db_engine, create_session_factory


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    """File-backed so store writes from worker threads get their own connections."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'products.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return create_session_factory(engine)


@pytest.fixture()
def store(session_factory: sessionmaker) -> SQLAlchemyResultStore:
    return SQLAlchemyResultStore(session_factory=session_factory)
