"""Performance checks based on measured load times, page weight and resource counts."""
from __future__ import annotations

from typing import List, Sequence

from site_auditor.analyzers.base import Analyzer
from site_auditor.config import AnalysisOptions
from site_auditor.models import AnalyzerOutcome, Issue, PageRecord

MB = 1024 * 1024


class PerformanceAnalyzer(Analyzer):
    name = "performance"

    def __init__(self, options: AnalysisOptions | None = None) -> None:
        super().__init__()
        self.options = options or AnalysisOptions()

    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        self.logger.info("Starting performance analysis for %d pages", len(pages))
        loaded = [p for p in pages if p.ok]
        issues: List[Issue] = []
        suggestions: List[str] = []
        score = 100

        avg_load = sum(p.load_time_ms for p in loaded) / len(loaded) if loaded else 0.0
        if avg_load > 3000:
            score -= 20
        elif avg_load > 2000:
            score -= 10
        elif avg_load > 1000:
            score -= 5
        if avg_load > 2000:
            issues.append(Issue("warning", f"Average load time is {avg_load:.0f} ms"))
            suggestions.append(
                "Pages load slowly. Improve server response time and optimize resources for better loading speed."
            )

        slow = [p for p in loaded if p.load_time_ms > 3000]
        for page in slow[:10]:
            issues.append(Issue("warning", f"Slow page ({page.load_time_ms:.0f} ms)", page.url))

        avg_size = sum(p.size_bytes for p in loaded) / len(loaded) if loaded else 0.0
        if avg_size > 5 * MB:
            score -= 15
        elif avg_size > 3 * MB:
            score -= 8
        elif avg_size > 2 * MB:
            score -= 3
        if avg_size > 2 * MB:
            suggestions.append("Total page size is large. Compress images and minify CSS and JavaScript.")

        scripts = styles = 0
        if home_page.ok and home_page.html:
            soup = self.soup(home_page)
            scripts = len(soup.find_all("script", src=True))
            styles = sum(1 for link in soup.find_all("link", rel="stylesheet"))
        if not self.options.skip_js and scripts > 15:
            score -= 5
            issues.append(Issue("info", f"{scripts} external scripts on the home page", home_page.url))
            suggestions.append("Reduce JavaScript size with code splitting and removal of unused code.")
        if not self.options.skip_css and styles > 10:
            score -= 3
            issues.append(Issue("info", f"{styles} stylesheets on the home page", home_page.url))
            suggestions.append("Remove unused styles and combine CSS files.")
        if not self.options.skip_images and len(home_page.images) > 50:
            score -= 5
            suggestions.append("Many images on the home page. Use WebP and lazy loading for faster load time.")

        encoding = home_page.headers.get("content-encoding", "").lower()
        if not any(codec in encoding for codec in ("gzip", "br")):
            suggestions.append("Enable Gzip or Brotli compression to improve performance.")
        suggestions.append("Use browser caching and a CDN.")

        details = {
            "averageLoadTimeMs": round(avg_load, 2),
            "averagePageSizeBytes": round(avg_size),
            "slowPages": [p.url for p in slow],
            "homeScripts": scripts,
            "homeStylesheets": styles,
        }
        return self.build_outcome(score, issues, suggestions, details)
