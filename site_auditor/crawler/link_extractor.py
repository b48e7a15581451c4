# site_auditor/crawler/link_extractor.py
"""
Link/image extraction and URL normalization utilities for SiteAuditor.

Every URL leaving this module is absolute, normalized and restricted to the
hostname of the crawl's start URL.
"""
from __future__ import annotations

import posixpath
from typing import Iterable, List, Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_auditor.exceptions import ExtractionError

__all__ = [
    "normalize_url",
    "same_host",
    "parse_document",
    "extract_title",
    "extract_links",
    "extract_images",
]

_SKIP_PREFIXES = ("mailto:", "javascript:", "tel:", "data:", "#")


def normalize_url(url: str) -> str:
    """
    Normalize URL: lowercase scheme and host, resolve dot segments,
    sort the query string and drop the fragment.
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()
    path = unquote(parsed.path or "/")
    norm = posixpath.normpath(path)
    if parsed.path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if not norm.startswith("/"):
        norm = "/" + norm
    # normpath keeps a leading "//"
    if norm.startswith("//"):
        norm = "/" + norm.lstrip("/")
    norm = quote(norm, safe="/:@!$&'()*+,;=-._~")
    qs = parse_qsl(parsed.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    return urlunparse((scheme, netloc, norm, "", query, ""))


def same_host(url: str, start_url: str) -> bool:
    """True when *url* is http(s) and its hostname equals the start URL's."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    return parsed.hostname is not None and parsed.hostname == urlparse(start_url).hostname


def parse_document(html: str, url: str = "") -> BeautifulSoup:
    try:
        return BeautifulSoup(html or "", "html.parser")
    except Exception as exc:
        raise ExtractionError(url, f"Could not parse HTML of {url}: {exc}") from exc


def extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    return title_tag.get_text(strip=True) if title_tag else ""


def _resolve_all(values: Iterable[str], page_url: str, start_url: str) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for raw in values:
        raw = raw.strip()
        if not raw or raw.lower().startswith(_SKIP_PREFIXES):
            continue
        try:
            absolute = normalize_url(urljoin(page_url, raw))
        except ValueError:
            # malformed, e.g. an invalid IPv6 literal
            continue
        if not same_host(absolute, start_url):
            continue
        if absolute not in seen:
            seen.add(absolute)
            result.append(absolute)
    return result


def _attr_values(soup: BeautifulSoup, tag_name: str, attr: str) -> List[str]:
    values: List[str] = []
    for tag in soup.find_all(tag_name):
        if not isinstance(tag, Tag):
            continue
        value: Optional[object] = tag.get(attr)
        if isinstance(value, str):
            values.append(value)
    return values


def extract_links(soup: BeautifulSoup, page_url: str, start_url: str) -> List[str]:
    """
    Extract same-host links from <a href> tags in document order.

    Relative hrefs are resolved against *page_url*; the host filter uses
    *start_url*, so cross-host URLs never reach the crawler.
    """
    return _resolve_all(_attr_values(soup, "a", "href"), page_url, start_url)


def extract_images(soup: BeautifulSoup, page_url: str, start_url: str) -> List[str]:
    """Extract deduplicated same-host <img src> URLs in document order."""
    return _resolve_all(_attr_values(soup, "img", "src"), page_url, start_url)
