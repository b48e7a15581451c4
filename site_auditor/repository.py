# === FILE: site_auditor/repository.py ===
"""
Report repository: the narrow read/update interface the job queue persists
through, plus an in-memory implementation used by the CLI and the tests.
"""
from __future__ import annotations

import asyncio
import copy
import uuid
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from site_auditor.config import AnalysisOptions
from site_auditor.exceptions import JobNotFoundError
from site_auditor.models import AggregateResult, AnalysisJob, AnalyzerOutcome, JobStatus, PageRecord

__all__ = ["ReportRepository", "InMemoryReportRepository"]


class ReportRepository(Protocol):
    async def create_job(self, url: str, options: AnalysisOptions) -> str: ...

    async def update_job_progress(self, job_id: str, crawled: int, total: int, progress: int = 0) -> None: ...

    async def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        completed_at: Optional[datetime] = None,
        error: Optional[str] = None,
        attempts: Optional[int] = None,
    ) -> None: ...

    async def save_page_records(self, job_id: str, records: Sequence[PageRecord]) -> None: ...

    async def save_aggregate(
        self,
        job_id: str,
        aggregate: AggregateResult,
        outcomes: Optional[Mapping[str, AnalyzerOutcome]] = None,
    ) -> None: ...

    async def get_job(self, job_id: str) -> AnalysisJob: ...

    async def get_page_records(self, job_id: str) -> List[PageRecord]: ...


class InMemoryReportRepository:
    """Dict-backed repository. Returned jobs are copies of the stored state."""

    def __init__(self) -> None:
        self._jobs: Dict[str, AnalysisJob] = {}
        self._pages: Dict[str, List[PageRecord]] = {}
        self._lock = asyncio.Lock()

    def _require(self, job_id: str) -> AnalysisJob:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(job_id) from None

    async def create_job(self, url: str, options: AnalysisOptions) -> str:
        job_id = str(uuid.uuid4())
        async with self._lock:
            self._jobs[job_id] = AnalysisJob(id=job_id, url=url, options=options)
            self._pages[job_id] = []
        return job_id

    async def update_job_progress(self, job_id: str, crawled: int, total: int, progress: int = 0) -> None:
        async with self._lock:
            job = self._require(job_id)
            job.crawled_page_count = crawled
            job.total_page_estimate = total
            job.progress = max(job.progress, progress)

    async def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        completed_at: Optional[datetime] = None,
        error: Optional[str] = None,
        attempts: Optional[int] = None,
    ) -> None:
        async with self._lock:
            job = self._require(job_id)
            job.status = status
            if completed_at is not None:
                job.completed_at = completed_at
            if error is not None:
                job.error = error
            if attempts is not None:
                job.attempts = attempts

    async def save_page_records(self, job_id: str, records: Sequence[PageRecord]) -> None:
        async with self._lock:
            job = self._require(job_id)
            self._pages[job_id] = list(records)
            job.error_count = sum(1 for r in records if r.errors)

    async def save_aggregate(
        self,
        job_id: str,
        aggregate: AggregateResult,
        outcomes: Optional[Mapping[str, AnalyzerOutcome]] = None,
    ) -> None:
        async with self._lock:
            job = self._require(job_id)
            job.aggregate_result = aggregate
            job.outcomes = copy.deepcopy(dict(outcomes or {}))

    async def get_job(self, job_id: str) -> AnalysisJob:
        async with self._lock:
            return copy.deepcopy(self._require(job_id))

    async def get_page_records(self, job_id: str) -> List[PageRecord]:
        async with self._lock:
            self._require(job_id)
            return list(self._pages[job_id])
