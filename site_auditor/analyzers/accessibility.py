"""Accessibility checks (WCAG-inspired): alt text, labels, headings, language, empty controls."""
from __future__ import annotations

from typing import Dict, List, Sequence

from bs4 import BeautifulSoup

from site_auditor.analyzers.base import Analyzer
from site_auditor.models import AnalyzerOutcome, Issue, PageRecord

#: points deducted per violation, by impact
IMPACT_PENALTY: Dict[str, int] = {"critical": 10, "serious": 7, "moderate": 4, "minor": 2}
MAX_PAGES = 10


class AccessibilityAnalyzer(Analyzer):
    name = "accessibility"

    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        self.logger.info("Starting accessibility analysis for %d pages", len(pages))
        violations: List[tuple[str, str, str]] = []
        for page in self.html_pages(pages, MAX_PAGES):
            soup = self.soup(page)
            violations.extend((impact, msg, page.url) for impact, msg in self._check(soup))

        # one deduction per (impact, message) pair, not per page
        unique = list(dict.fromkeys((impact, msg) for impact, msg, _ in violations))
        score = 100 - sum(IMPACT_PENALTY[impact] for impact, _ in unique)

        severity = {"critical": "error", "serious": "error", "moderate": "warning", "minor": "info"}
        issues = [Issue(severity[impact], msg, url) for impact, msg, url in violations]

        impacts = {impact for impact, _ in unique}
        messages = {msg for _, msg in unique}
        suggestions: List[str] = []
        if "critical" in impacts:
            suggestions.append("Critical accessibility problems found. Check image alt text and form labels.")
        if "serious" in impacts:
            suggestions.append("Serious accessibility problems found. Improve keyboard navigation and contrast.")
        if any("alt" in m for m in messages):
            suggestions.append("Give every image meaningful alt text.")
        if any("label" in m for m in messages):
            suggestions.append("Associate a label with every form control.")
        if any("Heading" in m for m in messages):
            suggestions.append("Use headings in a proper hierarchy.")
        suggestions.append("Test the site with a screen reader.")
        suggestions.append("Test navigation using only the keyboard.")

        if "critical" in impacts or "serious" in impacts:
            level = "A"
        elif "moderate" in impacts:
            level = "AA"
        else:
            level = "AAA"
        details = {"wcagLevel": level, "violationCount": len(violations)}
        return self.build_outcome(score, issues, suggestions, details)

    @staticmethod
    def _check(soup: BeautifulSoup) -> List[tuple[str, str]]:
        found: List[tuple[str, str]] = []

        if any(not img.has_attr("alt") for img in soup.find_all("img")):
            found.append(("critical", "Images without alt text"))

        labelled = {label.get("for") for label in soup.find_all("label") if label.get("for")}
        for control in soup.find_all(["input", "select", "textarea"]):
            if control.get("type") in ("hidden", "submit", "button", "image", "reset"):
                continue
            if control.get("id") in labelled or control.get("aria-label") or control.get("aria-labelledby"):
                continue
            if control.find_parent("label") is not None:
                continue
            found.append(("critical", "Form controls without label"))
            break

        levels = [int(tag.name[1]) for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])]
        if levels and levels[0] != 1:
            found.append(("moderate", "Heading structure does not start with H1"))
        if any(b - a > 1 for a, b in zip(levels, levels[1:])):
            found.append(("moderate", "Heading levels are skipped"))

        html_tag = soup.find("html")
        if html_tag is None or not html_tag.get("lang"):
            found.append(("serious", "Document language (lang attribute) is missing"))

        for tag in soup.find_all(["a", "button"]):
            if tag.get_text(strip=True) or tag.get("aria-label") or tag.find("img", alt=True):
                continue
            found.append(("serious", "Links or buttons without accessible name"))
            break

        if soup.find(attrs={"tabindex": lambda v: v is not None and v.lstrip("-").isdigit() and int(v) > 0}):
            found.append(("minor", "Positive tabindex disturbs focus order"))
        return found
