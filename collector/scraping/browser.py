"""
Browsing context providers.

A provider hands out one isolated context per job. The lifecycle manager
owns opening, readiness waiting and teardown; capabilities only see the page.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import requests
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from collector.scraping.capabilities.base import PageHandle
from collector.scraping.config.models import CollectorSettings
from collector.scraping.errors import ContextOpenError, LoadTimeoutError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
BROWSER_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]


@dataclass
class ContextHandle:
    """
    One open browsing context and the page loaded in it.
    """

    locator: str
    page: PageHandle
    resource: Any = None


@dataclass(frozen=True)
class StaticPage:
    """
    Already-fetched page content.
    """

    url: str
    html: str

    async def content(self) -> str:
        return self.html


class BrowsingContextProvider(ABC):
    """
    Source of fresh, isolated browsing contexts.
    """

    @abstractmethod
    async def open(self, locator: str) -> ContextHandle:
        """
        Create a new context and begin loading `locator`. Raises
        `ContextOpenError` when no context can be created.
        """

    @abstractmethod
    async def wait_until_ready(self, handle: ContextHandle, timeout_seconds: float) -> None:
        """
        Wait until the page signals ready. Raises `LoadTimeoutError` when it
        does not within `timeout_seconds`.
        """

    @abstractmethod
    async def close(self, handle: ContextHandle) -> None:
        """
        Release the context behind `handle`.
        """

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def __aenter__(self) -> BrowsingContextProvider:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()


class PlaywrightContextProvider(BrowsingContextProvider):
    """
    Chromium-backed provider. One browser is shared per provider and every job
    gets its own `BrowserContext`, so cookies and storage never leak between
    jobs.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str | None = None,
        navigation_timeout_seconds: float = 30.0,
    ) -> None:
        self._headless = headless
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._navigation_timeout_ms = navigation_timeout_seconds * 1000
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._start_lock = asyncio.Lock()

    async def start(self) -> None:
        async with self._start_lock:
            if self._browser is not None:
                return
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._headless,
                args=BROWSER_LAUNCH_ARGS,
            )
            logger.info("Started Chromium browser headless=%s", self._headless)

    async def stop(self) -> None:
        async with self._start_lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

    async def open(self, locator: str) -> ContextHandle:
        try:
            await self.start()
            if self._browser is None:
                raise ContextOpenError("Browser is not running.", locator=locator)
            context = await self._browser.new_context(user_agent=self._user_agent)
        except PlaywrightError as exc:
            raise ContextOpenError(f"Unable to create browser context: {exc}", locator=locator) from exc

        try:
            page = await context.new_page()
            page.set_default_navigation_timeout(self._navigation_timeout_ms)
            await page.goto(locator, wait_until="commit")
        except PlaywrightError as exc:
            await _close_quietly(context, locator=locator)
            raise ContextOpenError(f"Navigation failed: {exc}", locator=locator) from exc

        return ContextHandle(locator=locator, page=page, resource=context)

    async def wait_until_ready(self, handle: ContextHandle, timeout_seconds: float) -> None:
        try:
            await handle.page.wait_for_load_state("load", timeout=timeout_seconds * 1000)
        except PlaywrightTimeoutError as exc:
            raise LoadTimeoutError(
                f"Page did not finish loading within {timeout_seconds}s.",
                locator=handle.locator,
            ) from exc

    async def close(self, handle: ContextHandle) -> None:
        if handle.resource is not None:
            await handle.resource.close()


class HTTPContextProvider(BrowsingContextProvider):
    """
    Browserless provider for server-rendered pages.

    The page is fetched in full on `open`, so readiness is immediate.
    """

    def __init__(
        self,
        *,
        settings: CollectorSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.request_headers = {"User-Agent": settings.user_agent or DEFAULT_USER_AGENT}

    async def stop(self) -> None:
        self.session.close()

    async def open(self, locator: str) -> ContextHandle:
        try:
            response = await asyncio.to_thread(self._request_with_retry, locator)
        except (requests.RequestException, RuntimeError) as exc:
            raise ContextOpenError(f"Unable to fetch page: {exc}", locator=locator) from exc
        page = StaticPage(url=response.url or locator, html=response.text)
        return ContextHandle(locator=locator, page=page)

    async def wait_until_ready(self, handle: ContextHandle, timeout_seconds: float) -> None:
        return None

    async def close(self, handle: ContextHandle) -> None:
        handle.resource = None

    def _request_with_retry(self, url: str) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.settings.http_max_retries + 1):
            try:
                response = self.session.get(
                    url,
                    headers=self.request_headers,
                    timeout=self.settings.http_timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as exc:
                last_error = exc
                if isinstance(exc, requests.HTTPError):
                    status_code = exc.response.status_code if exc.response is not None else None
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise

            if attempt >= self.settings.http_max_retries:
                break

            backoff_seconds = self.settings.http_backoff_initial_seconds * (
                self.settings.http_backoff_multiplier**attempt
            )
            time.sleep(backoff_seconds)

        raise RuntimeError(f"Failed to fetch {url} after retries: {last_error}")


def build_context_provider(settings: CollectorSettings) -> BrowsingContextProvider:
    if settings.browser == "http":
        return HTTPContextProvider(settings=settings)
    return PlaywrightContextProvider(
        headless=settings.headless,
        user_agent=settings.user_agent,
        navigation_timeout_seconds=settings.navigation_timeout_seconds,
    )


async def _close_quietly(context: Any, *, locator: str) -> None:
    try:
        await context.close()
    except PlaywrightError:
        logger.warning("Failed to close browser context after navigation error url=%s", locator)
