"""
Batch collection orchestrator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace

from collector.domain.batch import BatchRun, BatchSummary, JobStatus, ProgressEvent
from collector.scraping.browser import BrowsingContextProvider
from collector.scraping.config.models import CollectorSettings
from collector.scraping.errors import BatchAlreadyRunningError, InvalidBatchError, JobError
from collector.scraping.lifecycle import PageLifecycleManager
from collector.scraping.locators import is_valid_locator
from collector.scraping.logging_utils import log_event
from collector.scraping.progress import ProgressReporter
from collector.scraping.rate_limiter import JobRateLimiter
from collector.scraping.registry import PlatformRegistry
from collector.scraping.storage import ResultStore

logger = logging.getLogger(__name__)


class BatchRunHandle:
    """
    Caller-side view of one submitted batch.
    """

    def __init__(self, *, run: BatchRun, task: asyncio.Task[BatchSummary]) -> None:
        self._run = run
        self._task = task

    @property
    def id(self) -> str:
        return self._run.id

    @property
    def run(self) -> BatchRun:
        """Point-in-time copy of the run state."""
        return replace(self._run, jobs=list(self._run.jobs))

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> bool:
        """
        Stop dispatching further jobs. Jobs already running finish normally.
        Returns False when the run was already cancelled or has finished.
        """

        if self.done or not self._run.cancel():
            return False
        log_event(
            logger,
            logging.INFO,
            "batch_cancel_requested",
            run_id=self._run.id,
            completed=self._run.completed_count,
            total=self._run.total,
        )
        return True

    async def wait(self) -> BatchSummary:
        return await asyncio.shield(self._task)


class BatchOrchestrator:
    """
    Runs batches of product page locators through dispatch, the page
    lifecycle and the result store.

    One batch runs at a time per orchestrator. A job failure of any kind is
    recorded against that job and never aborts the batch.
    """

    def __init__(
        self,
        *,
        store: ResultStore,
        provider: BrowsingContextProvider,
        settings: CollectorSettings,
        registry: PlatformRegistry | None = None,
        reporter: ProgressReporter | None = None,
        lifecycle: PageLifecycleManager | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._registry = registry or PlatformRegistry(
            disabled_platforms=settings.disabled_platforms
        )
        self.reporter = reporter or ProgressReporter()
        self._lifecycle = lifecycle or PageLifecycleManager(
            provider,
            load_timeout_seconds=settings.load_timeout_seconds,
            settle_seconds=settings.settle_seconds,
            extraction_timeout_seconds=settings.extraction_timeout_seconds,
        )
        self._active: BatchRunHandle | None = None
        self._handles: dict[str, BatchRunHandle] = {}
        self._last_run: BatchRun | None = None

    @property
    def active_run(self) -> BatchRun | None:
        if self._active is None or self._active.done:
            return None
        return self._active.run

    @property
    def last_run(self) -> BatchRun | None:
        return self._last_run

    def get_handle(self, run_id: str) -> BatchRunHandle | None:
        return self._handles.get(run_id)

    async def shutdown(self) -> BatchSummary | None:
        """
        Cancel the active run, if any, and wait for its in-flight jobs to
        finish. Returns the run's summary.
        """

        handle = self._active
        if handle is None or handle.done:
            return None
        handle.cancel()
        return await handle.wait()

    def submit_batch(
        self,
        locators: Sequence[str],
        *,
        delay_seconds: float | None = None,
    ) -> BatchRunHandle:
        """
        Validate `locators` and start a batch run on the running event loop.

        Raises `InvalidBatchError` for malformed input and
        `BatchAlreadyRunningError` while another run is active.
        """

        validated = self._validate(locators)
        if delay_seconds is not None and delay_seconds < 0:
            raise InvalidBatchError("delay_seconds must be zero or positive.")
        if self._active is not None and not self._active.done:
            raise BatchAlreadyRunningError(self._active.id)

        loop = asyncio.get_running_loop()
        run = BatchRun.from_locators(validated)
        limiter = JobRateLimiter(
            delay_seconds=self._settings.job_delay_seconds if delay_seconds is None else delay_seconds,
            per_host=self._settings.rate_limit_per_host,
        )
        task = loop.create_task(self._execute(run, limiter))
        handle = BatchRunHandle(run=run, task=task)
        self._active = handle
        self._handles[run.id] = handle
        return handle

    async def _execute(self, run: BatchRun, limiter: JobRateLimiter) -> BatchSummary:
        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in range(run.total):
            queue.put_nowait(index)

        worker_count = max(1, min(self._settings.workers, run.total))
        log_event(
            logger,
            logging.INFO,
            "batch_started",
            run_id=run.id,
            total=run.total,
            workers=worker_count,
            delay_seconds=limiter.delay_seconds,
        )

        workers = [
            asyncio.create_task(self._worker(run, queue, limiter))
            for _ in range(worker_count)
        ]
        try:
            results = await asyncio.gather(*workers, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(
                        "Batch worker crashed run_id=%s",
                        run.id,
                        exc_info=(type(result), result, result.__traceback__),
                    )
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            run.close()
            summary = BatchSummary.from_run(run)
            self._last_run = run
            log_event(
                logger,
                logging.INFO,
                "batch_completed",
                run_id=run.id,
                total=summary.total,
                succeeded=summary.succeeded,
                failed=summary.failed,
                skipped=summary.skipped,
                cancelled=summary.cancelled,
            )
            self.reporter.publish_summary(summary)
        return summary

    async def _worker(
        self,
        run: BatchRun,
        queue: asyncio.Queue[int],
        limiter: JobRateLimiter,
    ) -> None:
        while not run.cancelled:
            try:
                index = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            locator = run.jobs[index].locator
            await limiter.wait(locator)
            if run.cancelled:
                return

            try:
                await self._run_job(run, index)
            finally:
                limiter.mark_finished(locator)

    async def _run_job(self, run: BatchRun, index: int) -> None:
        job = run.start_job(index)
        locator = job.locator
        log_event(logger, logging.INFO, "job_started", run_id=run.id, locator=locator)

        error: str | None = None
        product_id: str | None = None
        try:
            dispatch = self._registry.resolve(locator)
            run.set_platform(index, dispatch.platform_id)
            result = await self._lifecycle.run_job(
                locator,
                capability=dispatch.capability,
                platform=dispatch.platform_id,
            )
            outcome = await asyncio.to_thread(self._store.upsert, result)
            product_id = outcome.id
        except JobError as exc:
            error = f"{type(exc).__name__}: {exc}"
        except Exception as exc:
            logger.exception("Unexpected failure while collecting url=%s", locator)
            error = f"{type(exc).__name__}: {exc}"

        if error is None:
            job = run.succeed_job(index, product_id=product_id)
            log_event(
                logger,
                logging.INFO,
                "job_succeeded",
                run_id=run.id,
                locator=locator,
                platform=job.platform,
                product_id=product_id,
            )
        else:
            job = run.fail_job(index, error=error)
            log_event(
                logger,
                logging.WARNING,
                "job_failed",
                run_id=run.id,
                locator=locator,
                platform=job.platform,
                error=error,
            )

        self.reporter.publish_progress(
            ProgressEvent(
                run_id=run.id,
                current=run.completed_count,
                total=run.total,
                label=locator,
                status=job.status,
                error=job.error if job.status == JobStatus.FAILED else None,
            )
        )

    @staticmethod
    def _validate(locators: Sequence[str]) -> list[str]:
        if isinstance(locators, (str, bytes)) or not isinstance(locators, Sequence):
            raise InvalidBatchError("Locators must be a list of URLs.")
        if not locators:
            raise InvalidBatchError("At least one locator is required.")

        validated: list[str] = []
        invalid: list[str] = []
        for position, locator in enumerate(locators):
            if not isinstance(locator, str) or not is_valid_locator(locator.strip()):
                invalid.append(f"#{position}: {locator!r}")
                continue
            validated.append(locator.strip())
        if invalid:
            raise InvalidBatchError(f"Invalid locators: {', '.join(invalid)}")
        return validated
