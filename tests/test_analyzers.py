# File: tests/test_analyzers.py
"""Behaviour of the individual analyzer modules on hand-made page records."""
import pytest

from conftest import BASE, make_page
from site_auditor.analyzers import (
    AccessibilityAnalyzer,
    MobileAnalyzer,
    PerformanceAnalyzer,
    SecurityAnalyzer,
    SEOAnalyzer,
    TechnologyAnalyzer,
    default_analyzers,
)
from site_auditor.config import AnalysisOptions
from site_auditor.models import PageRecord

HTTPS = "https://example.com/"

GOOD_SEO_HTML = (
    "<html lang='en'><head>"
    f"<title>{'T' * 40}</title>"
    f"<meta name='description' content='{'d' * 130}'>"
    "<script type='application/ld+json'>{}</script>"
    "</head><body><h1>Main</h1><h2>Sub</h2><img src='/a.png' alt='a'></body></html>"
)

ALL_SECURITY_HEADERS = {
    "content-security-policy": "default-src 'self'",
    "x-frame-options": "DENY",
    "x-content-type-options": "nosniff",
    "strict-transport-security": "max-age=31536000",
    "referrer-policy": "no-referrer",
}


def test_default_analyzers_order():
    names = [a.name for a in default_analyzers()]
    assert names == ["seo", "performance", "security", "accessibility", "mobile", "technology"]


@pytest.mark.asyncio()
async def test_seo_perfect_page():
    page = make_page(html=GOOD_SEO_HTML, title="T" * 40)
    outcome = await SEOAnalyzer().analyze([page], page)
    assert outcome.module_name == "seo"
    assert outcome.score == 100
    assert outcome.issues == []
    assert outcome.details["h1Count"] == 1
    assert outcome.details["hasStructuredData"] is True


@pytest.mark.asyncio()
async def test_seo_problems_lower_score():
    html = "<html><head><title>Short</title></head><body><h1>a</h1><h1>b</h1><img src='x.png'></body></html>"
    page = make_page(html=html, title="Short")
    outcome = await SEOAnalyzer().analyze([page], page)
    assert outcome.score < 100
    messages = " ".join(i.message for i in outcome.issues)
    assert "Title tag" in messages
    assert "exactly one H1" in messages
    assert any("SEO" in s for s in outcome.suggestions)


@pytest.mark.asyncio()
async def test_seo_duplicate_titles():
    home = make_page(html=GOOD_SEO_HTML, title="Same")
    other = make_page(url=f"{BASE}/other", html=GOOD_SEO_HTML, title="Same")
    outcome = await SEOAnalyzer().analyze([home, other], home)
    assert outcome.details["duplicateTitles"] == ["Same"]


@pytest.mark.asyncio()
async def test_seo_error_page_scores_zero():
    home = PageRecord.error(f"{BASE}/", 0, "boom")
    outcome = await SEOAnalyzer().analyze([home], home)
    assert outcome.score == 0


@pytest.mark.asyncio()
async def test_performance_slow_pages():
    page = make_page(html="<p>x</p>", load_time_ms=3500)
    outcome = await PerformanceAnalyzer().analyze([page], page)
    assert outcome.score == 80
    assert outcome.details["slowPages"] == [page.url]
    assert any("loading speed" in s for s in outcome.suggestions)


@pytest.mark.asyncio()
async def test_performance_respects_skip_js():
    html = "".join(f"<script src='/s{i}.js'></script>" for i in range(16))
    page = make_page(html=html, load_time_ms=100)

    counted = await PerformanceAnalyzer().analyze([page], page)
    skipped = await PerformanceAnalyzer(AnalysisOptions(skip_js=True)).analyze([page], page)
    assert counted.score == 95
    assert skipped.score == 100


@pytest.mark.asyncio()
async def test_security_plain_http():
    page = make_page(html="<p>x</p>")
    outcome = await SecurityAnalyzer().analyze([page], page)
    assert outcome.details["usesHttps"] is False
    assert outcome.score == 100 - 30 - 5 * 4
    assert any("HTTPS" in s for s in outcome.suggestions)


@pytest.mark.asyncio()
async def test_security_hardened_https_site():
    page = make_page(url=HTTPS, html="<img src='/a.png'>", headers=ALL_SECURITY_HEADERS)
    outcome = await SecurityAnalyzer().analyze([page], page)
    assert outcome.score == 100
    assert all(outcome.details["securityHeaders"].values())


@pytest.mark.asyncio()
async def test_security_mixed_content_and_banner():
    headers = dict(ALL_SECURITY_HEADERS, server="Apache/2.4.1")
    page = make_page(url=HTTPS, html="<script src='http://cdn.example.com/x.js'></script>", headers=headers)
    outcome = await SecurityAnalyzer().analyze([page], page)
    assert outcome.details["mixedContentPages"] == [HTTPS]
    assert outcome.score == 100 - 15 - 3


@pytest.mark.asyncio()
async def test_accessibility_penalties():
    html = "<html><body><h1>Title</h1><img src='a.png'></body></html>"
    page = make_page(html=html)
    outcome = await AccessibilityAnalyzer().analyze([page], page)
    # missing alt (critical) + missing lang (serious)
    assert outcome.score == 100 - 10 - 7
    assert outcome.details["wcagLevel"] == "A"
    assert any("alt text" in s for s in outcome.suggestions)


@pytest.mark.asyncio()
async def test_accessibility_clean_page():
    html = (
        "<html lang='en'><body><h1>Title</h1><h2>Part</h2>"
        "<label for='q'>Search</label><input id='q' type='text'>"
        "<a href='/x'>More</a><img src='a.png' alt='logo'></body></html>"
    )
    page = make_page(html=html)
    outcome = await AccessibilityAnalyzer().analyze([page], page)
    assert outcome.score == 100
    assert outcome.details["wcagLevel"] == "AAA"


@pytest.mark.asyncio()
async def test_mobile_friendly_page():
    html = (
        "<html><head><meta name='viewport' content='width=device-width, initial-scale=1'>"
        "<style>@media (max-width: 600px) { body { font-size: 16px; } }</style></head><body></body></html>"
    )
    page = make_page(html=html, load_time_ms=300)
    outcome = await MobileAnalyzer().analyze([page], page)
    assert outcome.score == 100
    assert outcome.details["hasViewport"] is True


@pytest.mark.asyncio()
async def test_mobile_unfriendly_page():
    page = make_page(html="<html><body style='width: 1200px; font-size: 9px'></body></html>", load_time_ms=300)
    outcome = await MobileAnalyzer().analyze([page], page)
    assert outcome.score == 100 - 20 - 15 - 15 - 10
    assert any("mobile" in s.lower() for s in outcome.suggestions)


@pytest.mark.asyncio()
async def test_technology_detection():
    html = (
        "<html><head><meta name='generator' content='WordPress 6.4'>"
        "<script src='/wp-includes/js/jquery/jquery.min.js'></script></head>"
        "<body><link href='/wp-content/themes/x/style.css'></body></html>"
    )
    page = make_page(html=html, headers={"server": "nginx/1.25.3", "x-powered-by": "PHP/8.2"})
    outcome = await TechnologyAnalyzer().analyze([page], page)
    assert outcome.score == 100
    assert "WordPress" in outcome.details["cms"]
    assert "WordPress 6.4" in outcome.details["cms"]
    assert "jQuery" in outcome.details["libraries"]
    assert outcome.details["servers"] == ["nginx/1.25.3", "PHP/8.2"]
