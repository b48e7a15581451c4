# File: site_auditor/engine.py
"""site_auditor.engine: фасад для запуска аудита сайта через очередь задач."""

from __future__ import annotations

import asyncio
import contextlib
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from site_auditor.config import AnalysisOptions, AuditorConfig, load_config
from site_auditor.logger import logger
from site_auditor.models import AnalysisJob, AnalyzerOutcome, PageRecord
from site_auditor.queue import FetcherFactory, JobQueue, OrchestratorFactory, SleepT
from site_auditor.repository import InMemoryReportRepository, ReportRepository

__all__ = ["AuditReport", "Engine", "start_audit"]

OptionsT = Union[AnalysisOptions, Mapping[str, Any], None]

#: сколько ждать завершения отменённой задачи (секунд)
CANCEL_GRACE_PERIOD = 5.0


@dataclass(slots=True)
class AuditReport:
    """Итог одной задачи: состояние задачи, записи страниц и результаты модулей."""

    job: AnalysisJob
    pages: List[PageRecord] = field(default_factory=list)
    outcomes: Dict[str, AnalyzerOutcome] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.job.aggregate_result is not None and self.job.status.value == "completed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job.to_dict(),
            "pages": [p.to_dict() for p in self.pages],
            "outcomes": {name: o.to_dict() for name, o in self.outcomes.items()},
        }

    def json(self, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


class Engine:
    """Фасад для CLI и тестов: репозиторий + очередь, запуск одной задачи и сбор отчёта."""

    @staticmethod
    def load_config(path: Optional[str]) -> AuditorConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(
        self,
        config: Optional[AuditorConfig] = None,
        repository: Optional[ReportRepository] = None,
        *,
        fetcher_factory: Optional[FetcherFactory] = None,
        orchestrator_factory: Optional[OrchestratorFactory] = None,
        sleep: SleepT = asyncio.sleep,
    ) -> None:
        self.config = config or AuditorConfig()
        self.repository = repository or InMemoryReportRepository()
        self._fetcher_factory = fetcher_factory
        self._orchestrator_factory = orchestrator_factory
        self._sleep = sleep

    def queue(self) -> JobQueue:
        """Новая очередь поверх репозитория движка."""
        return JobQueue(
            self.repository,
            self.config,
            fetcher_factory=self._fetcher_factory,
            orchestrator_factory=self._orchestrator_factory,
            sleep=self._sleep,
        )

    async def audit(self, url: str, options: OptionsT = None, timeout: Optional[float] = None) -> AuditReport:
        """
        Ставит задачу в очередь, ждёт терминального статуса и собирает отчёт.

        По истечении *timeout* задача отменяется и пробрасывается
        ``asyncio.TimeoutError``.
        """
        logger.info("Starting audit of %s", url)
        async with self.queue() as queue:
            job_id = await queue.submit(url, options)
            try:
                job = await queue.wait_for(job_id, timeout)
            except asyncio.TimeoutError:
                logger.error("Audit of %s did not finish within %s seconds", url, timeout)
                await queue.cancel(job_id, f"Audit did not finish within {timeout} seconds")
                # даём задаче дойти до статуса cancelled до остановки воркера
                with contextlib.suppress(asyncio.TimeoutError):
                    await queue.wait_for(job_id, CANCEL_GRACE_PERIOD)
                raise
            pages = await queue.get_page_records(job_id)
        return AuditReport(job=job, pages=pages, outcomes=dict(job.outcomes))


async def start_audit(
    config: AuditorConfig,
    url: str,
    options: OptionsT = None,
    timeout: Optional[float] = None,
) -> AuditReport:
    """Точка входа для CLI: один аудит с конфигурацией *config*."""
    return await Engine(config).audit(url, options, timeout)
