"""
Delay-based job rate limiter.
"""

from __future__ import annotations

import asyncio
import time

from collector.scraping.locators import locator_host

_GLOBAL_KEY = "*"


class JobRateLimiter:
    """
    Enforces a minimum delay between the end of one job and the start of the
    next.

    This is a blocking delay with no burst allowance. With several workers
    the window also counts from the latest dispatch, so new dispatches are
    gated globally (or per host when `per_host` is set).
    """

    def __init__(self, *, delay_seconds: float, per_host: bool = False) -> None:
        self._delay_seconds = max(0.0, delay_seconds)
        self._per_host = per_host
        self._last_mark_by_key: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    async def wait(self, locator: str) -> float:
        """
        Sleep until the delay window for `locator` has elapsed and claim the
        next dispatch slot. Returns the number of seconds waited.
        """

        if self._delay_seconds <= 0:
            return 0.0

        key = self._key(locator)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            last_mark = self._last_mark_by_key.get(key)
            waited = 0.0
            if last_mark is not None:
                waited = self._delay_seconds - (time.monotonic() - last_mark)
                if waited > 0:
                    await asyncio.sleep(waited)
                else:
                    waited = 0.0
            self._last_mark_by_key[key] = time.monotonic()
            return waited

    def mark_finished(self, locator: str) -> None:
        """
        Record that a job for `locator` has just finished.
        """

        if self._delay_seconds <= 0:
            return
        self._last_mark_by_key[self._key(locator)] = time.monotonic()

    def _key(self, locator: str) -> str:
        if not self._per_host:
            return _GLOBAL_KEY
        return locator_host(locator) or _GLOBAL_KEY
