"""Technology detection from response headers and markup fingerprints.

The result is informational: the score is fixed at 100 and it is not part of
the weighted aggregate.
"""
from __future__ import annotations

import re
from typing import Dict, List, Sequence, Tuple

from site_auditor.analyzers.base import Analyzer
from site_auditor.models import AnalyzerOutcome, PageRecord

#: (category, name, pattern matched against the markup)
MARKUP_FINGERPRINTS: Tuple[Tuple[str, str, str], ...] = (
    ("framework", "React", r"data-reactroot|react(?:\.production)?(?:\.min)?\.js|__NEXT_DATA__"),
    ("framework", "Next.js", r"__NEXT_DATA__|/_next/static/"),
    ("framework", "Vue.js", r"data-v-[0-9a-f]{6,}|vue(?:\.min)?\.js|__NUXT__"),
    ("framework", "Angular", r"ng-version=|angular(?:\.min)?\.js"),
    ("framework", "Bootstrap", r"bootstrap(?:\.min)?\.(?:css|js)"),
    ("framework", "Tailwind CSS", r"tailwind(?:\.min)?\.css|cdn\.tailwindcss\.com"),
    ("cms", "WordPress", r"wp-content/|wp-includes/"),
    ("cms", "Drupal", r"Drupal\.settings|/sites/default/files/"),
    ("cms", "Joomla", r"/media/jui/|content=\"Joomla"),
    ("cms", "Shopify", r"cdn\.shopify\.com"),
    ("cms", "Wix", r"static\.wixstatic\.com"),
    ("library", "jQuery", r"jquery(?:[.-]\d[\w.]*)?(?:\.min)?\.js"),
    ("library", "Lodash", r"lodash(?:\.min)?\.js"),
    ("library", "Font Awesome", r"font-?awesome"),
    ("analytics", "Google Analytics", r"google-analytics\.com|gtag\(|googletagmanager\.com/gtag"),
    ("analytics", "Google Tag Manager", r"googletagmanager\.com/gtm\.js"),
    ("analytics", "Hotjar", r"static\.hotjar\.com"),
)

_COMPILED = [(cat, name, re.compile(pattern, re.IGNORECASE)) for cat, name, pattern in MARKUP_FINGERPRINTS]
CATEGORIES = ("frameworks", "libraries", "cms", "servers", "analytics")
_CATEGORY_KEY = {"framework": "frameworks", "library": "libraries", "cms": "cms", "server": "servers",
                 "analytics": "analytics"}


class TechnologyAnalyzer(Analyzer):
    name = "technology"

    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        self.logger.info("Starting technology analysis for %s", home_page.url)
        found: Dict[str, List[str]] = {key: [] for key in CATEGORIES}

        headers = {k.lower(): v for k, v in home_page.headers.items()}
        for header in ("server", "x-powered-by"):
            value = headers.get(header)
            if value:
                found["servers"].append(value.split()[0])
        if "x-generator" in headers:
            found["cms"].append(headers["x-generator"])

        html = home_page.html
        generator = self.soup(home_page).find("meta", attrs={"name": "generator"}) if html else None
        if generator is not None and generator.get("content"):
            found["cms"].append(generator["content"])
        for category, name, pattern in _COMPILED:
            if html and pattern.search(html):
                found[_CATEGORY_KEY[category]].append(name)

        details = {key: list(dict.fromkeys(values)) for key, values in found.items()}
        total = sum(len(v) for v in details.values())
        self.logger.info("Technology analysis completed. Found %d technologies", total)
        return self.build_outcome(100, [], [], details)
