"""
Per-job page lifecycle: open, wait for ready, settle, extract, close.
"""

from __future__ import annotations

import asyncio
import logging

from collector.domain.products import ExtractionResult
from collector.scraping.browser import BrowsingContextProvider, ContextHandle
from collector.scraping.capabilities.base import ExtractionCapability
from collector.scraping.errors import ContextOpenError, ExtractionError, JobError, LoadTimeoutError
from collector.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)


class PageLifecycleManager:
    """
    Runs one job inside a fresh browsing context.

    A page that never signals ready is not a failure: extraction is attempted
    against whatever has rendered once the load deadline passes. The context
    is always released, and teardown errors never replace the job's outcome.
    """

    def __init__(
        self,
        provider: BrowsingContextProvider,
        *,
        load_timeout_seconds: float = 15.0,
        settle_seconds: float = 1.0,
        extraction_timeout_seconds: float | None = None,
    ) -> None:
        self.provider = provider
        self.load_timeout_seconds = load_timeout_seconds
        self.settle_seconds = settle_seconds
        self.extraction_timeout_seconds = extraction_timeout_seconds

    async def run_job(
        self,
        locator: str,
        *,
        capability: ExtractionCapability,
        platform: str,
        timeout_seconds: float | None = None,
    ) -> ExtractionResult:
        timeout = self.load_timeout_seconds if timeout_seconds is None else timeout_seconds
        handle = await self._open(locator)
        try:
            await self._wait_until_ready(handle, timeout)
            if self.settle_seconds > 0:
                await asyncio.sleep(self.settle_seconds)
            return await self._extract(handle, capability=capability, platform=platform)
        finally:
            await self._close(handle)

    async def _open(self, locator: str) -> ContextHandle:
        try:
            return await self.provider.open(locator)
        except ContextOpenError:
            raise
        except Exception as exc:
            raise ContextOpenError(f"Unable to open browsing context: {exc}", locator=locator) from exc

    async def _wait_until_ready(self, handle: ContextHandle, timeout: float) -> None:
        try:
            await asyncio.wait_for(
                self.provider.wait_until_ready(handle, timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, LoadTimeoutError):
            log_event(
                logger,
                logging.WARNING,
                "page_load_timeout",
                locator=handle.locator,
                timeout_seconds=timeout,
            )

    async def _extract(
        self,
        handle: ContextHandle,
        *,
        capability: ExtractionCapability,
        platform: str,
    ) -> ExtractionResult:
        extraction = capability.extract(handle.page, locator=handle.locator, platform=platform)
        try:
            if self.extraction_timeout_seconds is None:
                return await extraction
            return await asyncio.wait_for(extraction, timeout=self.extraction_timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise ExtractionError(
                f"Extraction exceeded {self.extraction_timeout_seconds}s.",
                locator=handle.locator,
            ) from exc
        except JobError:
            raise
        except Exception as exc:
            raise ExtractionError(f"Extraction failed: {exc}", locator=handle.locator) from exc

    async def _close(self, handle: ContextHandle) -> None:
        try:
            await self.provider.close(handle)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "context_close_failed",
                locator=handle.locator,
                error=str(exc),
            )
