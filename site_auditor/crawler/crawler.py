# === FILE: site_auditor/crawler/crawler.py ===
"""
Bounded crawl engine.

Traversal starts at the start URL (depth 0) and follows same-host links up to
``max_depth``/``max_pages``. State lives in a :class:`CrawlContext` owned by a
single :meth:`CrawlEngine.crawl` call. The worklist is a stack for ``dfs``
(same visiting order as a recursive depth-first walk) or a FIFO for ``bfs``.
Fetches are strictly sequential with ``crawl_delay`` between them.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, List, Optional, Set, Tuple

from site_auditor.cancellation import CancelToken
from site_auditor.config import AnalysisOptions, AuditorConfig
from site_auditor.crawler.fetcher import FetchResult, PageFetcher
from site_auditor.crawler.link_extractor import normalize_url, same_host
from site_auditor.exceptions import ExtractionError, FetchError
from site_auditor.models import PageRecord

__all__ = ("CrawlContext", "CrawlEngine", "CrawlProgress")

SleepT = Callable[[float], Awaitable[None]]

#: (url, depth, parent_url)
_Entry = Tuple[str, int, Optional[str]]


@dataclass(slots=True)
class CrawlProgress:
    crawled: int
    total: int
    percentage: int


@dataclass(slots=True)
class CrawlContext:
    """Traversal state of one run: visited-set, accepted pages and frontier."""

    start_url: str
    visited: Set[str] = field(default_factory=set)
    pages: List[PageRecord] = field(default_factory=list)
    frontier: Deque[_Entry] = field(default_factory=deque)
    fetches: int = 0


class CrawlEngine:
    """Drives a bounded, deduplicating traversal over a :class:`PageFetcher`."""

    def __init__(
        self,
        fetcher: PageFetcher,
        config: AuditorConfig,
        options: AnalysisOptions,
        *,
        cancel_token: Optional[CancelToken] = None,
        sleep: SleepT = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.options = options
        self.cancel_token = cancel_token
        self._sleep = sleep
        self._ctx: Optional[CrawlContext] = None
        self.logger = logging.getLogger("SiteAuditor")

    @property
    def pages(self) -> List[PageRecord]:
        """Records accepted so far in the current (or last) run."""
        return list(self._ctx.pages) if self._ctx else []

    def progress(self) -> CrawlProgress:
        if self._ctx is None:
            return CrawlProgress(0, self.options.max_pages, 0)
        crawled = len(self._ctx.pages)
        total = max(crawled, min(self.options.max_pages, len(self._ctx.visited) + 10), 1)
        return CrawlProgress(crawled, total, round(crawled / total * 100))

    async def crawl(self, start_url: str) -> List[PageRecord]:
        """Crawl from *start_url* and return page records in visiting order."""
        root = normalize_url(start_url)
        ctx = CrawlContext(start_url=root)
        ctx.frontier.append((root, 0, None))
        self._ctx = ctx

        self.logger.info(
            "Crawl started: %s (max_depth=%d, max_pages=%d, order=%s)",
            root, self.options.max_depth, self.options.max_pages, self.config.traversal,
        )
        started = time.monotonic()
        while ctx.frontier:
            if len(ctx.pages) >= self.options.max_pages:
                break
            url, depth, parent = self._next(ctx)
            if url in ctx.visited or depth > self.options.max_depth:
                continue
            await self._visit(ctx, url, depth, parent)

        duration = time.monotonic() - started
        self.logger.info(
            "Crawl finished: %d pages in %.2f s (%.2f pages/s)",
            len(ctx.pages), duration, len(ctx.pages) / duration if duration else 0,
        )
        return list(ctx.pages)

    def _next(self, ctx: CrawlContext) -> _Entry:
        if self.config.traversal == "bfs":
            return ctx.frontier.popleft()
        return ctx.frontier.pop()

    def _schedule(self, ctx: CrawlContext, links: List[str], depth: int, parent: str) -> None:
        children = [(link, depth, parent) for link in links if link not in ctx.visited]
        if self.config.traversal == "bfs":
            ctx.frontier.extend(children)
        else:
            # reversed so the first extracted link is popped first
            ctx.frontier.extend(reversed(children))

    async def _visit(self, ctx: CrawlContext, url: str, depth: int, parent: Optional[str]) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()
        if ctx.fetches and self.config.crawl_delay > 0:
            await self._sleep(self.config.crawl_delay)
            if self.cancel_token is not None:
                self.cancel_token.raise_if_cancelled()

        ctx.visited.add(url)
        ctx.fetches += 1
        started = time.monotonic()
        try:
            result = await self.fetcher.fetch(url, self.config.navigation_timeout)
        except (FetchError, ExtractionError) as exc:
            self.logger.error("Error crawling page %s: %s", url, exc)
            elapsed = round((time.monotonic() - started) * 1000, 2)
            ctx.pages.append(PageRecord.error(url, depth, str(exc), parent_url=parent, load_time_ms=elapsed))
            return

        if result.status >= 400:
            self.logger.warning("Page returned error status: %d for %s", result.status, url)
            return

        record = self._record(result, ctx.start_url, url, depth, parent)
        ctx.pages.append(record)
        self.logger.info("Crawled page: %s (depth: %d, time: %.0fms)", url, depth, result.load_time_ms)

        if depth < self.options.max_depth and len(ctx.pages) < self.options.max_pages:
            self._schedule(ctx, list(record.links), depth + 1, url)

    @staticmethod
    def _record(result: FetchResult, start_url: str, url: str, depth: int, parent: Optional[str]) -> PageRecord:
        return PageRecord(
            url=url,
            depth=depth,
            status_code=result.status,
            load_time_ms=result.load_time_ms,
            content_type=result.content_type,
            size_bytes=result.size_bytes,
            title=result.title,
            parent_url=parent,
            links=_same_host_unique(result.links, start_url),
            images=_same_host_unique(result.images, start_url),
            html=result.html,
            headers=dict(result.headers),
        )


def _same_host_unique(urls: List[str], start_url: str) -> Tuple[str, ...]:
    kept = (normalize_url(u) for u in urls)
    return tuple(dict.fromkeys(u for u in kept if same_host(u, start_url)))
