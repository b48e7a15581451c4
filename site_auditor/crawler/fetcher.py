# site_auditor/crawler/fetcher.py
"""
Page fetcher: loads one URL with a navigation timeout and a fixed user agent,
measures load time and extracts same-host links and images.

The crawl engine only depends on the :class:`PageFetcher` protocol; the
default implementation is :class:`AiohttpPageFetcher`.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from types import TracebackType
from typing import List, Mapping, Optional, Protocol, Type

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_auditor.config import AuditorConfig
from site_auditor.crawler.link_extractor import (
    extract_images,
    extract_links,
    extract_title,
    parse_document,
)
from site_auditor.exceptions import FetchTimeoutError, NetworkUnreachableError

__all__ = ["FetchResult", "PageFetcher", "AiohttpPageFetcher"]

logger = logging.getLogger("SiteAuditor")

_HTML_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(slots=True)
class FetchResult:
    """What a successful navigation returns (any HTTP status)."""

    url: str
    status: int
    html: str = ""
    load_time_ms: float = 0.0
    content_type: str = ""
    size_bytes: int = 0
    title: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    links: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)


class PageFetcher(Protocol):
    """Capability the crawl engine drives. Raises FetchError subclasses on failure."""

    async def __aenter__(self) -> "PageFetcher": ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None: ...

    async def fetch(self, url: str, timeout: float) -> FetchResult: ...


class AiohttpPageFetcher:
    """Fetcher over one aiohttp session, owned by a single job attempt."""

    def __init__(self, config: AuditorConfig, start_url: str, *, skip_images: bool = False) -> None:
        self.config = config
        self.start_url = start_url
        self.skip_images = skip_images
        self.session: Optional[ClientSession] = None

    async def __aenter__(self) -> AiohttpPageFetcher:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.config.navigation_timeout),
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("HTTP session closed")
        self.session = None

    async def fetch(self, url: str, timeout: float) -> FetchResult:
        if not self.session:
            raise RuntimeError("Session not initialized")
        start = time.monotonic()
        try:
            async with self.session.get(url, timeout=ClientTimeout(total=timeout), allow_redirects=True) as resp:
                body = await resp.read()
                status = resp.status
                mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                charset = resp.charset or "utf-8"
                headers = {k.lower(): v for k, v in resp.headers.items()}
                final_url = str(resp.url)
        except asyncio.TimeoutError as exc:
            raise FetchTimeoutError(url, timeout) from exc
        except ClientError as exc:
            raise NetworkUnreachableError(url, f"{type(exc).__name__}: {exc}") from exc
        load_time_ms = round((time.monotonic() - start) * 1000, 2)

        result = FetchResult(
            url=url,
            status=status,
            load_time_ms=load_time_ms,
            content_type=mime or "unknown",
            size_bytes=len(body),
            headers=headers,
        )
        if status >= 400 or mime not in _HTML_TYPES:
            return result

        try:
            html = body.decode(charset, errors="replace")
        except LookupError:
            html = body.decode("utf-8", errors="replace")
        soup = parse_document(html, url)
        result.html = html
        result.title = extract_title(soup)
        result.links = extract_links(soup, final_url, self.start_url)
        if not self.skip_images:
            result.images = extract_images(soup, final_url, self.start_url)
        return result
