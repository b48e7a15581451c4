"""site_auditor.analyzers: независимые модули анализа корпуса страниц."""

from __future__ import annotations

from typing import List, Optional

from site_auditor.analyzers.accessibility import AccessibilityAnalyzer
from site_auditor.analyzers.base import Analyzer
from site_auditor.analyzers.mobile import MobileAnalyzer
from site_auditor.analyzers.performance import PerformanceAnalyzer
from site_auditor.analyzers.security import SecurityAnalyzer
from site_auditor.analyzers.seo import SEOAnalyzer
from site_auditor.analyzers.technology import TechnologyAnalyzer
from site_auditor.config import AnalysisOptions

__all__ = [
    "Analyzer",
    "SEOAnalyzer",
    "PerformanceAnalyzer",
    "SecurityAnalyzer",
    "AccessibilityAnalyzer",
    "MobileAnalyzer",
    "TechnologyAnalyzer",
    "default_analyzers",
]


def default_analyzers(options: Optional[AnalysisOptions] = None) -> List[Analyzer]:
    """Все шесть модулей в порядке регистрации."""
    return [
        SEOAnalyzer(),
        PerformanceAnalyzer(options),
        SecurityAnalyzer(),
        AccessibilityAnalyzer(),
        MobileAnalyzer(),
        TechnologyAnalyzer(),
    ]
