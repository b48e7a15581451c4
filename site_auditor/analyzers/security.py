"""Security checks: HTTPS usage, mixed content, security headers, server banners."""
from __future__ import annotations

import re
from typing import Dict, List, Sequence
from urllib.parse import urlparse

from site_auditor.analyzers.base import Analyzer
from site_auditor.models import AnalyzerOutcome, Issue, PageRecord

SECURITY_HEADERS: Dict[str, str] = {
    "content-security-policy": "Set a Content-Security-Policy (CSP) header to mitigate XSS attacks.",
    "x-frame-options": "Set the X-Frame-Options header to prevent clickjacking.",
    "x-content-type-options": "Set X-Content-Type-Options: nosniff to prevent MIME sniffing.",
    "strict-transport-security": "Set a Strict-Transport-Security (HSTS) header to enforce HTTPS.",
    "referrer-policy": "Set a Referrer-Policy header to control referrer leakage.",
}

_INSECURE_SRC = re.compile(r"""(?:src|href)\s*=\s*["']http://""", re.IGNORECASE)
_VERSIONED_SERVER = re.compile(r"/\d")


class SecurityAnalyzer(Analyzer):
    name = "security"

    def evaluate(self, pages: Sequence[PageRecord], home_page: PageRecord) -> AnalyzerOutcome:
        self.logger.info("Starting security analysis for %d pages", len(pages))
        issues: List[Issue] = []
        suggestions: List[str] = []
        score = 100

        http_pages = [p.url for p in pages if urlparse(p.url).scheme != "https"]
        uses_https = not http_pages
        if not uses_https:
            score -= 30
            issues.append(Issue("error", f"{len(http_pages)} pages are served without HTTPS"))
            suggestions.append("Serve every page over HTTPS and redirect HTTP to HTTPS.")

        mixed = [
            p.url
            for p in self.html_pages(pages)
            if urlparse(p.url).scheme == "https" and _INSECURE_SRC.search(p.html)
        ]
        if mixed:
            score -= 15
            for url in mixed[:10]:
                issues.append(Issue("error", "Mixed content: resources loaded over HTTP", url))
            suggestions.append("Remove mixed content by loading all resources over HTTPS for better security.")

        headers = {k.lower(): v for k, v in home_page.headers.items()}
        present = {name: name in headers for name in SECURITY_HEADERS}
        for name, ok in present.items():
            if not ok:
                score -= 4
                issues.append(Issue("warning", f"Missing security header: {name}", home_page.url))
                suggestions.append(SECURITY_HEADERS[name])

        server = headers.get("server", "")
        powered_by = headers.get("x-powered-by", "")
        if _VERSIONED_SERVER.search(server) or powered_by:
            score -= 3
            issues.append(Issue("info", "Server discloses software version information", home_page.url))
            suggestions.append("Hide server version banners to reduce security information disclosure.")

        suggestions.append("Run regular security audits and vulnerability scans.")
        suggestions.append("Keep libraries and frameworks up to date.")

        details = {
            "usesHttps": uses_https,
            "mixedContentPages": mixed,
            "securityHeaders": present,
        }
        return self.build_outcome(score, issues, suggestions, details)
