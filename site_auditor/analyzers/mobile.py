"""Mobile-friendliness checks on the home page markup."""
from __future__ import annotations

import re
from typing import List, Sequence

from site_auditor.analyzers.base import Analyzer
from site_auditor.models import AnalyzerOutcome, Issue, PageRecord

_MEDIA_QUERY = re.compile(r"@media[^{]*(max-width|min-width)", re.IGNORECASE)
_FIXED_WIDTH = re.compile(r"width\s*:\s*(\d{4,})px", re.IGNORECASE)
_SMALL_FONT = re.compile(r"font-size\s*:\s*(\d+(?:\.\d+)?)px", re.IGNORECASE)


class MobileAnalyzer(Analyzer):
    name = "mobile"

    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        self.logger.info("Starting mobile analysis for %s", home_page.url)
        issues: List[Issue] = []
        suggestions: List[str] = []
        score = 100

        html = home_page.html if home_page.ok else ""
        soup = self.soup(home_page)

        viewport = soup.find("meta", attrs={"name": "viewport"})
        content = (viewport.get("content") or "") if viewport else ""
        has_viewport = "width=device-width" in content.replace(" ", "")
        if not has_viewport:
            score -= 20
            issues.append(Issue("error", "Viewport meta tag is missing or incomplete", home_page.url))
            suggestions.append(
                'Add a mobile viewport meta tag: <meta name="viewport" content="width=device-width, initial-scale=1">'
            )

        has_media_queries = bool(_MEDIA_QUERY.search(html)) or bool(
            soup.find("link", attrs={"media": re.compile(r"width", re.IGNORECASE)})
        )
        if not has_media_queries:
            score -= 15
            issues.append(Issue("warning", "No responsive media queries found", home_page.url))
            suggestions.append("Implement responsive design with CSS media queries for mobile screens.")

        if _FIXED_WIDTH.search(html):
            score -= 15
            issues.append(Issue("warning", "Fixed-width layout may cause horizontal scrolling", home_page.url))
            suggestions.append("Avoid horizontal scrolling by fitting content to mobile screen width.")

        small_fonts = [float(size) for size in _SMALL_FONT.findall(html) if float(size) < 12]
        if small_fonts:
            score -= 10
            issues.append(Issue("info", f"{len(small_fonts)} font-size declarations below 12px", home_page.url))
            suggestions.append("Use font sizes of at least 16px for mobile readability.")

        if home_page.load_time_ms > 3000:
            score -= 20
        elif home_page.load_time_ms > 2000:
            score -= 10
        elif home_page.load_time_ms > 1000:
            score -= 5
        if home_page.load_time_ms > 2000:
            suggestions.append("Mobile load time is slow. Optimize images and reduce file sizes.")

        suggestions.append("Adopt a mobile-first design.")
        suggestions.append("Use responsive images for different screen densities.")

        details = {
            "hasViewport": has_viewport,
            "hasMediaQueries": has_media_queries,
            "loadTimeMs": home_page.load_time_ms,
        }
        return self.build_outcome(score, issues, suggestions, details)
