"""
Progress fan-out for batch runs.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from collector.domain.batch import BatchSummary, ProgressEvent
from collector.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)


class ProgressListener(Protocol):
    def on_progress(self, event: ProgressEvent) -> None: ...

    def on_complete(self, summary: BatchSummary) -> None: ...


class ProgressReporter:
    """
    Delivers progress events and the terminal summary to every subscribed
    listener. A failing listener is logged and skipped; it never affects the
    run or the other listeners.
    """

    def __init__(self) -> None:
        self._listeners: list[ProgressListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish_progress(self, event: ProgressEvent) -> None:
        for listener in self._snapshot():
            try:
                listener.on_progress(event)
            except Exception as exc:
                self._log_failure(listener, exc, run_id=event.run_id)

    def publish_summary(self, summary: BatchSummary) -> None:
        for listener in self._snapshot():
            try:
                listener.on_complete(summary)
            except Exception as exc:
                self._log_failure(listener, exc, run_id=summary.run_id)

    def _snapshot(self) -> list[ProgressListener]:
        with self._lock:
            return list(self._listeners)

    @staticmethod
    def _log_failure(listener: ProgressListener, exc: Exception, *, run_id: str) -> None:
        log_event(
            logger,
            logging.WARNING,
            "progress_listener_failed",
            run_id=run_id,
            listener=type(listener).__name__,
            error=str(exc),
        )


class LoggingProgressListener:
    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def on_progress(self, event: ProgressEvent) -> None:
        log_event(
            self._logger,
            logging.INFO,
            "batch_progress",
            run_id=event.run_id,
            current=event.current,
            total=event.total,
            percentage=event.percentage,
            label=event.label,
            status=event.status,
        )

    def on_complete(self, summary: BatchSummary) -> None:
        log_event(
            self._logger,
            logging.INFO,
            "batch_summary",
            run_id=summary.run_id,
            total=summary.total,
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
            cancelled=summary.cancelled,
        )


class ProgressSnapshot:
    """
    Keeps the latest progress event and summary for status polling.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: ProgressEvent | None = None
        self._summary: BatchSummary | None = None

    @property
    def latest(self) -> ProgressEvent | None:
        with self._lock:
            return self._latest

    @property
    def summary(self) -> BatchSummary | None:
        with self._lock:
            return self._summary

    def on_progress(self, event: ProgressEvent) -> None:
        with self._lock:
            if self._latest is None or self._latest.run_id != event.run_id:
                self._summary = None
            self._latest = event

    def on_complete(self, summary: BatchSummary) -> None:
        with self._lock:
            self._summary = summary
