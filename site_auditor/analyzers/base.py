"""Base analyzer interface."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from site_auditor.crawler.link_extractor import parse_document
from site_auditor.models import AnalyzerOutcome, Issue, PageRecord

__all__ = ["Analyzer", "dedupe"]


def dedupe(items: Iterable[str]) -> List[str]:
    """Remove duplicates keeping first-seen order."""
    return list(dict.fromkeys(items))


class Analyzer(ABC):
    """
    Abstract base class for all analyzer modules.

    ``evaluate`` receives the full page corpus of a run and the home page
    record. Recoverable per-page problems become issues; only a module-level
    failure may raise.

    Parsing and rule checks are CPU-bound, so ``analyze`` runs ``evaluate``
    in a worker thread: the modules of one run overlap and the event loop
    stays responsive meanwhile.
    """

    #: key of the module in the aggregate (``seo``, ``performance``, ...)
    name: str = ""

    def __init__(self) -> None:
        self.logger = logging.getLogger("SiteAuditor")

    async def analyze(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        """Run the module over the crawled corpus off the event loop."""
        return await asyncio.to_thread(self.evaluate, list(pages), home_page)

    @abstractmethod
    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        """Synchronous body of the module."""

    @staticmethod
    def soup(page: PageRecord) -> BeautifulSoup:
        return parse_document(page.html, page.url)

    @staticmethod
    def html_pages(pages: Sequence[PageRecord], limit: Optional[int] = None) -> List[PageRecord]:
        """Pages that loaded successfully and have markup to inspect."""
        ok = [p for p in pages if p.ok and p.html]
        return ok if limit is None else ok[:limit]

    def build_outcome(
        self,
        score: float,
        issues: List[Issue],
        suggestions: Iterable[str],
        details: Optional[Dict[str, Any]] = None,
    ) -> AnalyzerOutcome:
        outcome = AnalyzerOutcome(
            module_name=self.name,
            score=score,
            issues=issues,
            suggestions=dedupe(suggestions),
            details=details or {},
        )
        self.logger.info("%s analysis completed with score: %d", self.name, outcome.score)
        return outcome
