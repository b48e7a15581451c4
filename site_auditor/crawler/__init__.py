"""site_auditor.crawler: загрузка страниц и ограниченный обход сайта."""

from site_auditor.crawler.crawler import CrawlContext, CrawlEngine, CrawlProgress
from site_auditor.crawler.fetcher import AiohttpPageFetcher, FetchResult, PageFetcher

__all__ = [
    "CrawlContext",
    "CrawlEngine",
    "CrawlProgress",
    "AiohttpPageFetcher",
    "FetchResult",
    "PageFetcher",
]
