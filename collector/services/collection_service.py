"""
collector/services/collection_service.py

Service wiring for batch product collection.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from functools import lru_cache

from collector.domain.batch import BatchRun, BatchSummary, ProgressEvent
from collector.scraping.browser import BrowsingContextProvider, build_context_provider
from collector.scraping.config import CollectorSettings, get_collector_settings
from collector.scraping.orchestrator import BatchOrchestrator, BatchRunHandle
from collector.scraping.progress import LoggingProgressListener, ProgressReporter, ProgressSnapshot
from collector.scraping.registry import PlatformRegistry, build_platform_registry
from collector.scraping.storage import ResultStore, SQLAlchemyResultStore
from db.session import SessionLocal


class CollectionService:
    """
    Owns the store, registry, browsing provider and orchestrator used by the
    API and the CLI.
    """

    def __init__(
        self,
        *,
        settings: CollectorSettings | None = None,
        store: ResultStore | None = None,
        registry: PlatformRegistry | None = None,
        provider: BrowsingContextProvider | None = None,
    ) -> None:
        self._settings = settings or get_collector_settings()
        self._store = store or SQLAlchemyResultStore(session_factory=SessionLocal)
        self._registry = registry or build_platform_registry(self._settings)
        self._provider = provider or build_context_provider(self._settings)

        self.snapshot = ProgressSnapshot()
        self.reporter = ProgressReporter()
        self.reporter.subscribe(LoggingProgressListener())
        self.reporter.subscribe(self.snapshot)

        self._orchestrator = BatchOrchestrator(
            store=self._store,
            provider=self._provider,
            settings=self._settings,
            registry=self._registry,
            reporter=self.reporter,
        )

    @property
    def settings(self) -> CollectorSettings:
        return self._settings

    @property
    def store(self) -> ResultStore:
        return self._store

    @property
    def registry(self) -> PlatformRegistry:
        return self._registry

    @property
    def orchestrator(self) -> BatchOrchestrator:
        return self._orchestrator

    def submit(
        self,
        locators: Sequence[str],
        *,
        delay_seconds: float | None = None,
    ) -> BatchRunHandle:
        """
        Start a batch on the running event loop and return immediately.
        """

        return self._orchestrator.submit_batch(locators, delay_seconds=delay_seconds)

    def get_run(self, run_id: str) -> BatchRunHandle | None:
        return self._orchestrator.get_handle(run_id)

    def current_run(self) -> BatchRun | None:
        return self._orchestrator.active_run or self._orchestrator.last_run

    def latest_progress(self) -> ProgressEvent | None:
        return self.snapshot.latest

    def latest_summary(self) -> BatchSummary | None:
        return self.snapshot.summary

    async def run_batch(
        self,
        locators: Sequence[str],
        *,
        delay_seconds: float | None = None,
    ) -> BatchSummary:
        async with self._provider:
            handle = self.submit(locators, delay_seconds=delay_seconds)
            return await handle.wait()

    def collect(
        self,
        locators: Sequence[str],
        *,
        delay_seconds: float | None = None,
    ) -> BatchSummary:
        """
        Run one batch to completion on a fresh event loop.
        """

        return asyncio.run(self.run_batch(locators, delay_seconds=delay_seconds))

    async def aclose(self) -> None:
        """
        Stop the active batch before releasing the browsing provider.
        """

        await self._orchestrator.shutdown()
        await self._provider.stop()


@lru_cache(maxsize=1)
def get_collection_service() -> CollectionService:
    """
    Build and cache the collection service.
    """

    return CollectionService()
