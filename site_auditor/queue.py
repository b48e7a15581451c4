# === FILE: site_auditor/queue.py ===
"""
Durable-style job queue with a single worker.

One :class:`JobQueue` owns an :class:`asyncio.Queue` of job ids and one worker
task, so at most one crawl (and one HTTP session) is in flight at a time.
Failed attempts are retried with exponential backoff; progress, retries and
terminal transitions are persisted through the repository and published to
listeners registered with :meth:`JobQueue.on`.
"""
from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import urlparse

from site_auditor.cancellation import CancelToken
from site_auditor.config import AnalysisOptions, AuditorConfig
from site_auditor.crawler.crawler import CrawlEngine
from site_auditor.crawler.fetcher import AiohttpPageFetcher, PageFetcher
from site_auditor.analyzers import default_analyzers
from site_auditor.exceptions import JobAttemptError, JobNotFoundError, RunCancelledError
from site_auditor.logger import job_context
from site_auditor.models import AnalysisJob, JobStatus, PageRecord, utcnow
from site_auditor.orchestrator import AnalyzerOrchestrator
from site_auditor.repository import ReportRepository

__all__ = ["RetryPolicy", "JobQueue", "CancelToken", "EVENTS"]

logger = logging.getLogger("SiteAuditor")

EVENTS = ("progress", "completed", "failed", "retrying", "cancelled")

SleepT = Callable[[float], Awaitable[None]]
FetcherFactory = Callable[[AnalysisJob], PageFetcher]
OrchestratorFactory = Callable[[AnalysisJob, CancelToken], AnalyzerOrchestrator]
Listener = Callable[..., Any]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Attempts per job and exponential backoff between them."""

    max_attempts: int = 3
    backoff_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay (seconds) after failed attempt number *attempt* (1-based)."""
        return self.backoff_base * 2 ** (attempt - 1)

    @classmethod
    def from_config(cls, config: AuditorConfig) -> RetryPolicy:
        return cls(max_attempts=config.max_attempts, backoff_base=config.backoff_base)


class JobQueue:
    """Accepts analysis requests and executes them one at a time."""

    def __init__(
        self,
        repository: ReportRepository,
        config: Optional[AuditorConfig] = None,
        *,
        fetcher_factory: Optional[FetcherFactory] = None,
        orchestrator_factory: Optional[OrchestratorFactory] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: SleepT = asyncio.sleep,
    ) -> None:
        self.repository = repository
        self.config = config or AuditorConfig()
        self.retry_policy = retry_policy or RetryPolicy.from_config(self.config)
        self._fetcher_factory = fetcher_factory or self._default_fetcher
        self._orchestrator_factory = orchestrator_factory or self._default_orchestrator
        self._sleep = sleep

        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._worker: Optional[asyncio.Task[None]] = None
        self._slot = asyncio.Lock()
        self._tokens: Dict[str, CancelToken] = {}
        self._done: Dict[str, asyncio.Event] = {}
        self._last_progress: Dict[str, int] = {}
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    # ------------------------------------------------------------------ #
    # Lifecycle                                                           #
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> JobQueue:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._worker_loop(), name="site-auditor-worker")
        logger.info("Analysis worker started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("Analysis worker stopped")

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    # ------------------------------------------------------------------ #
    # Submission API                                                      #
    # ------------------------------------------------------------------ #

    def on(self, event: str, callback: Listener) -> None:
        """Register a listener (plain function or coroutine function) for *event*."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event {event!r}; expected one of {EVENTS}")
        self._listeners[event].append(callback)

    async def submit(
        self,
        url: str,
        options: Union[AnalysisOptions, Mapping[str, Any], None] = None,
    ) -> str:
        """Create a pending job for *url* and enqueue it. Returns the job id."""
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Invalid URL (http/https expected): {url!r}")
        if options is None:
            opts = self.config.default_options
        elif isinstance(options, AnalysisOptions):
            opts = options
        else:
            opts = AnalysisOptions.model_validate(dict(options))

        job_id = await self.repository.create_job(url, opts)
        self._tokens[job_id] = CancelToken()
        self._done[job_id] = asyncio.Event()
        await self._queue.put(job_id)
        logger.info("Analysis queued for %s (job %s)", url, job_id)
        return job_id

    async def get_status(self, job_id: str) -> AnalysisJob:
        return await self.repository.get_job(job_id)

    async def get_page_records(self, job_id: str) -> List[PageRecord]:
        return await self.repository.get_page_records(job_id)

    async def wait_for(self, job_id: str, timeout: Optional[float] = None) -> AnalysisJob:
        """Block until *job_id* reaches a terminal status and return it."""
        done = self._done.get(job_id)
        if done is None:
            job = await self.repository.get_job(job_id)
            if job.is_terminal:
                return job
            raise JobNotFoundError(job_id)
        await asyncio.wait_for(done.wait(), timeout)
        return await self.repository.get_job(job_id)

    async def cancel(self, job_id: str, reason: str = "Cancelled by request") -> bool:
        """Request cancellation. Returns False for unknown or finished jobs."""
        token = self._tokens.get(job_id)
        done = self._done.get(job_id)
        if token is None or done is None or done.is_set():
            return False
        token.cancel(reason)
        logger.info("Cancellation requested for job %s: %s", job_id, reason)
        return True

    # ------------------------------------------------------------------ #
    # Worker                                                              #
    # ------------------------------------------------------------------ #

    async def _worker_loop(self) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self.process(job_id)
            except Exception:
                logger.exception("Unexpected error while processing job %s", job_id)
            finally:
                self._queue.task_done()

    async def process(self, job_id: str) -> AnalysisJob:
        """Execute one job with retries. Only one job is processed at a time."""
        async with self._slot:
            with job_context(job_id):
                token = self._tokens.setdefault(job_id, CancelToken())
                done = self._done.setdefault(job_id, asyncio.Event())
                try:
                    await self._run_with_retries(job_id, token)
                except asyncio.CancelledError:
                    reason = token.reason if token.cancelled else "Worker stopped"
                    await self._finish(job_id, JobStatus.CANCELLED, reason)
                    raise
                finally:
                    done.set()
                    # waiters already hold the event; finished jobs are read from the repository
                    self._tokens.pop(job_id, None)
                    self._done.pop(job_id, None)
                    self._last_progress.pop(job_id, None)
                return await self.repository.get_job(job_id)

    async def _run_with_retries(self, job_id: str, token: CancelToken) -> None:
        job = await self.repository.get_job(job_id)
        if job.is_terminal:
            logger.warning("Job %s is already %s; skipping", job_id, job.status.value)
            return
        if token.cancelled:
            await self._finish(job_id, JobStatus.CANCELLED, token.reason)
            await self._emit("cancelled", job_id)
            return

        policy = self.retry_policy
        for attempt in range(1, policy.max_attempts + 1):
            logger.info("Starting analysis job for %s (job %s, attempt %d/%d)",
                        job.url, job_id, attempt, policy.max_attempts)
            await self.repository.update_job_status(job_id, JobStatus.PROCESSING, attempts=attempt)
            try:
                await self._attempt(job, token)
            except RunCancelledError as exc:
                logger.warning("Analysis cancelled for %s (job %s)", job.url, job_id)
                await self._finish(job_id, JobStatus.CANCELLED, str(exc) or "Cancelled")
                await self._emit("cancelled", job_id)
                return
            except Exception as exc:
                error = JobAttemptError(job_id, attempt, exc)
                logger.error("Analysis failed for %s: %s", job.url, error)
                if attempt >= policy.max_attempts:
                    await self._finish(job_id, JobStatus.FAILED, f"{type(exc).__name__}: {exc}")
                    await self._emit("failed", job_id, error)
                    return
                delay = policy.delay_for(attempt)
                logger.info("Retrying job %s in %.1f s", job_id, delay)
                await self._emit("retrying", job_id, attempt, delay)
                await self._sleep(delay)
                if token.cancelled:
                    await self._finish(job_id, JobStatus.CANCELLED, token.reason)
                    await self._emit("cancelled", job_id)
                    return
            else:
                final = await self.repository.get_job(job_id)
                logger.info("Analysis completed for %s (job %s, %d pages, %d errors)",
                            job.url, job_id, final.crawled_page_count, final.error_count)
                await self._emit("completed", job_id, final.aggregate_result)
                return

    async def _attempt(self, job: AnalysisJob, token: CancelToken) -> None:
        """One attempt: crawl, persist pages, analyze, persist aggregate."""
        async with self._fetcher_factory(job) as fetcher:
            engine = CrawlEngine(fetcher, self.config, job.options, cancel_token=token)
            reporter = asyncio.create_task(self._report_progress(job.id, engine))
            try:
                pages = await engine.crawl(job.url)
            except Exception:
                # partial results stay queryable
                await self.repository.save_page_records(job.id, engine.pages)
                raise
            finally:
                reporter.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reporter

            await self._publish_progress(job.id, len(pages), len(pages), None)
            await self.repository.save_page_records(job.id, pages)

            orchestrator = self._orchestrator_factory(job, token)
            result = await orchestrator.run(pages, job.url)
            await self.repository.save_aggregate(job.id, result.aggregate, result.outcomes)

        await self._publish_progress(job.id, len(pages), len(pages), 100)
        await self.repository.update_job_status(job.id, JobStatus.COMPLETED, completed_at=utcnow())

    async def _report_progress(self, job_id: str, engine: CrawlEngine) -> None:
        while True:
            await asyncio.sleep(self.config.progress_interval)
            progress = engine.progress()
            await self._publish_progress(job_id, progress.crawled, progress.total, progress.percentage)

    async def _publish_progress(self, job_id: str, crawled: int, total: int, percentage: Optional[int]) -> None:
        last = self._last_progress.get(job_id, 0)
        value = last if percentage is None else max(last, min(100, percentage))
        self._last_progress[job_id] = value
        await self.repository.update_job_progress(job_id, crawled, total, value)
        if percentage is not None:
            await self._emit("progress", job_id, value)

    async def _finish(self, job_id: str, status: JobStatus, error: Optional[str]) -> None:
        await self.repository.update_job_status(job_id, status, completed_at=utcnow(), error=error)

    async def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Listener for %r failed", event)

    # ------------------------------------------------------------------ #
    # Defaults                                                            #
    # ------------------------------------------------------------------ #

    def _default_fetcher(self, job: AnalysisJob) -> PageFetcher:
        return AiohttpPageFetcher(self.config, job.url, skip_images=job.options.skip_images)

    def _default_orchestrator(self, job: AnalysisJob, token: CancelToken) -> AnalyzerOrchestrator:
        return AnalyzerOrchestrator(
            default_analyzers(job.options),
            isolate_failures=self.config.isolate_modules,
            fatal_modules=self.config.fatal_modules,
            cancel_token=token,
        )
