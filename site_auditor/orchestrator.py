# File: site_auditor/orchestrator.py
"""Fan-out of the page corpus to every analyzer module and fan-in of their outcomes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from site_auditor.aggregator import WEIGHTS, aggregate
from site_auditor.analyzers import Analyzer, default_analyzers
from site_auditor.cancellation import CancelToken
from site_auditor.crawler.link_extractor import normalize_url
from site_auditor.exceptions import ModuleError
from site_auditor.models import AggregateResult, AnalyzerOutcome, ModuleFailure, PageRecord

__all__ = ["RunResult", "AnalyzerOrchestrator", "select_home_page"]

logger = logging.getLogger("SiteAuditor")


@dataclass(slots=True)
class RunResult:
    aggregate: AggregateResult
    outcomes: Dict[str, AnalyzerOutcome] = field(default_factory=dict)
    failures: Dict[str, ModuleFailure] = field(default_factory=dict)


def select_home_page(pages: Sequence[PageRecord], start_url: str) -> PageRecord:
    """Record of the start URL, or the first record when it is absent."""
    target = normalize_url(start_url)
    for page in pages:
        if page.url == start_url or page.url == target:
            return page
    return pages[0]


class AnalyzerOrchestrator:
    """
    Runs all analyzer modules concurrently over one page corpus.

    Each module runs in its own task. By default a single module failure
    fails the whole run with :class:`ModuleError` and no aggregate is
    produced.

    With *isolate_failures* the aggregate is computed over the successful
    outcomes and the failed modules are listed in
    ``AggregateResult.failed_modules``. The run then fails only when a module
    named in *fatal_modules* fails or when no weighted module succeeded.
    """

    def __init__(
        self,
        analyzers: Optional[Sequence[Analyzer]] = None,
        *,
        isolate_failures: bool = False,
        fatal_modules: Iterable[str] = (),
        cancel_token: Optional[CancelToken] = None,
    ) -> None:
        self.analyzers: List[Analyzer] = list(analyzers) if analyzers is not None else default_analyzers()
        names = [a.name for a in self.analyzers]
        if len(set(names)) != len(names):
            raise ValueError(f"Analyzer names must be unique: {names}")
        self.isolate_failures = isolate_failures
        self.fatal_modules = frozenset(fatal_modules)
        self.cancel_token = cancel_token

    async def run(self, pages: Sequence[PageRecord], start_url: str) -> RunResult:
        if not pages:
            raise ModuleError("orchestrator", message="No pages were crawled; nothing to analyze")
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()

        home_page = select_home_page(pages, start_url)
        logger.info("Starting analysis for %d pages from %s", len(pages), start_url)

        tasks = [asyncio.create_task(self._run_one(a, pages, home_page)) for a in self.analyzers]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: Dict[str, AnalyzerOutcome] = {}
        failures: Dict[str, ModuleFailure] = {}
        for analyzer, result in zip(self.analyzers, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                failures[analyzer.name] = ModuleFailure(analyzer.name, f"{type(result).__name__}: {result}")
            else:
                outcomes[analyzer.name] = result

        self._check_failures(failures, outcomes, results)

        aggregate_result = aggregate(list(outcomes.values()), list(failures.values()))
        logger.info(
            "Analysis completed for %s: score=%d grade=%s failed_modules=%s",
            start_url, aggregate_result.overall_score, aggregate_result.grade, sorted(failures) or "none",
        )
        return RunResult(aggregate=aggregate_result, outcomes=outcomes, failures=failures)

    async def _run_one(
        self, analyzer: Analyzer, pages: Sequence[PageRecord], home_page: PageRecord
    ) -> AnalyzerOutcome:
        try:
            outcome = await analyzer.analyze(pages, home_page)
        except Exception:
            logger.exception("Error in %s analysis", analyzer.name)
            raise
        if outcome.module_name != analyzer.name:
            outcome.module_name = analyzer.name
        return outcome

    def _check_failures(
        self,
        failures: Dict[str, ModuleFailure],
        outcomes: Dict[str, AnalyzerOutcome],
        results: Sequence[object],
    ) -> None:
        if not failures:
            return
        by_name = {a.name: r for a, r in zip(self.analyzers, results)}
        for name in failures:
            if not self.isolate_failures or name in self.fatal_modules:
                cause = by_name[name]
                raise ModuleError(name, cause if isinstance(cause, BaseException) else None)
        if not any(name in WEIGHTS for name in outcomes):
            raise ModuleError(
                "orchestrator",
                message=f"Every scored analyzer failed: {', '.join(sorted(failures))}",
            )
