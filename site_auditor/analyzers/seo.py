"""Content/SEO checks: titles, meta descriptions, headings, alt text, structured data."""
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Sequence, Tuple

from site_auditor.analyzers.base import Analyzer
from site_auditor.models import AnalyzerOutcome, Issue, PageRecord

TITLE_RANGE = (30, 60)
DESCRIPTION_RANGE = (120, 160)
#: pages inspected besides the home page
MAX_DETAILED_PAGES = 10


class SEOAnalyzer(Analyzer):
    name = "seo"

    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        self.logger.info("Starting SEO analysis for %d pages", len(pages))
        issues: List[Issue] = []
        suggestions: List[str] = []
        scores: List[int] = []
        details: Dict[str, Any] = {}

        candidates = [home_page] + [p for p in self.html_pages(pages) if p.url != home_page.url]
        for page in candidates[: MAX_DETAILED_PAGES + 1]:
            score, page_details = self._analyze_page(page, issues, suggestions)
            scores.append(score)
            if page is home_page:
                details = page_details

        duplicates = self._duplicate_titles(pages)
        if duplicates:
            issues.append(Issue("warning", f"Found {len(duplicates)} duplicated page titles"))
            suggestions.append("Give every page a unique title to improve SEO.")

        average = round(sum(scores) / len(scores)) if scores else 0
        details["duplicateTitles"] = duplicates
        return self.build_outcome(average, issues, suggestions, details)

    def _analyze_page(
        self, page: PageRecord, issues: List[Issue], suggestions: List[str]
    ) -> Tuple[int, Dict[str, Any]]:
        if not page.ok or not page.html:
            issues.append(Issue("error", "Page content could not be analyzed", page.url))
            return 0, {}

        soup = self.soup(page)
        score = 100

        title = soup.title.get_text(strip=True) if soup.title else ""
        if not TITLE_RANGE[0] <= len(title) <= TITLE_RANGE[1]:
            score -= 15
            issues.append(Issue("error", f"Title tag is not optimal ({len(title)} characters)", page.url))
            suggestions.append("Keep page titles between 30 and 60 characters for SEO.")

        meta = soup.find("meta", attrs={"name": "description"})
        description = (meta.get("content") or "").strip() if meta else ""
        if not DESCRIPTION_RANGE[0] <= len(description) <= DESCRIPTION_RANGE[1]:
            score -= 10
            issues.append(
                Issue("warning", f"Meta description is not optimal ({len(description)} characters)", page.url)
            )
            suggestions.append("Write meta descriptions of 120-160 characters.")

        levels = [int(tag.name[1]) for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])]
        h1_count = levels.count(1)
        if any(b - a > 1 for a, b in zip(levels, levels[1:])):
            score -= 8
            issues.append(Issue("warning", "Heading hierarchy skips levels", page.url))
            suggestions.append("Use headings in order from H1 to H6.")
        if h1_count != 1:
            score -= 5
            issues.append(Issue("warning", f"Page should have exactly one H1 tag ({h1_count} found)", page.url))
            suggestions.append("Use exactly one H1 tag per page.")

        has_structured_data = bool(
            soup.find("script", attrs={"type": "application/ld+json"}) or soup.find(attrs={"itemscope": True})
        )
        if not has_structured_data:
            score -= 5
            suggestions.append("Consider adding structured data (Schema.org) for richer SEO results.")

        missing_alt = sum(1 for img in soup.find_all("img") if not img.has_attr("alt"))
        if missing_alt:
            score -= min(10, missing_alt * 2)
            issues.append(Issue("warning", f"{missing_alt} images without alt attribute", page.url))
            suggestions.append("Add alt attributes to all images.")

        canonical = soup.find("link", rel="canonical")
        details = {
            "title": title,
            "description": description,
            "h1Count": h1_count,
            "canonical": canonical.get("href") if canonical else None,
            "hasStructuredData": has_structured_data,
        }
        return max(0, score), details

    @staticmethod
    def _duplicate_titles(pages: Sequence[PageRecord]) -> List[str]:
        counts = Counter(p.title for p in pages if p.ok and p.title)
        return [title for title, n in counts.items() if n > 1]
