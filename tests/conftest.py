# File: tests/conftest.py
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Union

import pytest

from site_auditor.config import AnalysisOptions, AuditorConfig
from site_auditor.crawler.fetcher import FetchResult
from site_auditor.crawler.link_extractor import (
    extract_images,
    extract_links,
    extract_title,
    parse_document,
)
from site_auditor.models import PageRecord

BASE = "http://example.com"

#: url -> (status, html) or an exception raised by fetch()
SiteT = Dict[str, Union[tuple, BaseException]]


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


class FakeFetcher:
    """In-memory PageFetcher over a dict of pages."""

    def __init__(
        self,
        site: SiteT,
        start_url: str = BASE,
        *,
        hook: Optional[Callable[[str], Awaitable[None]]] = None,
        latency: float = 0.0,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.site = site
        self.start_url = start_url
        self.hook = hook
        self.latency = latency
        self.headers = headers or {"content-type": "text/html"}
        self.calls: List[str] = []
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> "FakeFetcher":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    async def fetch(self, url: str, timeout: float) -> FetchResult:
        self.calls.append(url)
        if self.hook is not None:
            await self.hook(url)
        if self.latency:
            await asyncio.sleep(self.latency)
        entry = self.site.get(url, (404, ""))
        if isinstance(entry, BaseException):
            raise entry
        status, html = entry
        result = FetchResult(
            url=url,
            status=status,
            load_time_ms=12.5,
            content_type="text/html",
            size_bytes=len(html.encode("utf-8")),
            headers=dict(self.headers),
        )
        if status < 400:
            soup = parse_document(html, url)
            result.html = html
            result.title = extract_title(soup)
            result.links = extract_links(soup, url, self.start_url)
            result.images = extract_images(soup, url, self.start_url)
        return result


def links_page(*hrefs: str, title: str = "Page") -> tuple:
    body = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return 200, f"<html><head><title>{title}</title></head><body>{body}</body></html>"


@pytest.fixture()
def fast_config() -> AuditorConfig:
    """Config without crawl delay and with a short progress period."""
    return AuditorConfig(crawl_delay=0.0, progress_interval=0.01, navigation_timeout=2.0)


@pytest.fixture()
def options() -> AnalysisOptions:
    return AnalysisOptions(max_depth=3, max_pages=100)


@pytest.fixture()
def small_site() -> SiteT:
    """/ -> /a, /b ; /a -> /a1 ; /b -> / (cycle)."""
    return {
        f"{BASE}/": links_page("/a", "/b", "mailto:info@example.com", "http://other.org/x", title="Home"),
        f"{BASE}/a": links_page("/a1", title="A"),
        f"{BASE}/a1": links_page(title="A1"),
        f"{BASE}/b": links_page("/", title="B"),
    }


def make_page(
    url: str = f"{BASE}/",
    html: str = "",
    *,
    depth: int = 0,
    load_time_ms: float = 100.0,
    headers: Optional[Dict[str, str]] = None,
    title: str = "",
    images: tuple = (),
) -> PageRecord:
    return PageRecord(
        url=url,
        depth=depth,
        status_code=200,
        load_time_ms=load_time_ms,
        content_type="text/html",
        size_bytes=len(html.encode("utf-8")),
        title=title,
        images=images,
        html=html,
        headers=headers or {},
    )
