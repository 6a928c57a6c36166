from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from collector.scraping.logging_utils import configure_logging


def _prepare_database() -> None:
    """
    Make sure the product tables exist.

    A local SQLite store gets its tables created on boot. Any other database
    must already be migrated with `alembic upgrade head`.
    """

    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers ORM models on Base.metadata
    from db.base import Base
    from db.config import is_sqlite_url, resolve_database_url
    from db.session import get_engine, init_db

    if is_sqlite_url(resolve_database_url()):
        init_db()
        return

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual
    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) missing from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def create_app(*, prepare_database: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        if prepare_database:
            _prepare_database()
            logging.getLogger(__name__).info("Product store ready")
        try:
            yield
        finally:
            from collector.services.collection_service import get_collection_service

            if get_collection_service.cache_info().currsize:
                await get_collection_service().aclose()

    application = FastAPI(
        title="Product Collector API",
        version="1.0.0",
        lifespan=lifespan,
    )

    from collector.api.routers import collection_router, products_router

    application.include_router(collection_router)
    application.include_router(products_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
