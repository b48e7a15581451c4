# File: site_auditor/aggregator.py
"""site_auditor.aggregator: взвешенная итоговая оценка по результатам модулей."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Sequence

from site_auditor.models import AggregateResult, AnalyzerOutcome, ModuleFailure

__all__ = [
    "WEIGHTS",
    "PRIORITY_KEYWORDS",
    "MAX_PRIORITY_SUGGESTIONS",
    "calculate_overall_score",
    "calculate_grade",
    "priority_suggestions",
    "summarize",
    "aggregate",
]

#: веса модулей; technology в сумму не входит
WEIGHTS: Mapping[str, Decimal] = {
    "seo": Decimal("0.25"),
    "performance": Decimal("0.20"),
    "security": Decimal("0.20"),
    "accessibility": Decimal("0.15"),
    "mobile": Decimal("0.20"),
}

PRIORITY_KEYWORDS: Sequence[str] = (
    "security",
    "https",
    "performance",
    "loading speed",
    "load time",
    "seo",
    "accessibility",
    "mobile",
)
MAX_PRIORITY_SUGGESTIONS = 5

_GRADE_MESSAGES: Mapping[str, str] = {
    "A": "The website is in excellent shape. Keep improving to maintain this quality.",
    "B": "The website is in good shape. Addressing a few issues will make it even better.",
    "C": "The website is average. Prioritize the most important improvements.",
    "D": "The website needs many improvements. Start with the highest-priority issues.",
    "F": "The website has serious problems that need immediate attention.",
}


def calculate_overall_score(scores: Mapping[str, int]) -> int:
    """
    Взвешенная сумма оценок с округлением половин вверх.

    Если часть взвешенных модулей отсутствует, веса оставшихся
    нормируются так, чтобы их сумма была равна 1.
    """
    present = {name: w for name, w in WEIGHTS.items() if name in scores}
    if not present:
        return 0
    weight_sum = sum(present.values(), Decimal(0))
    total = sum((Decimal(scores[name]) * w for name, w in present.items()), Decimal(0))
    if weight_sum != 1:
        total = total / weight_sum
    return int(total.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_grade(score: int) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def priority_suggestions(suggestions: Iterable[str], limit: int = MAX_PRIORITY_SUGGESTIONS) -> List[str]:
    """Отбирает рекомендации с ключевыми словами, без дублей, не более *limit*."""
    picked: List[str] = []
    for suggestion in suggestions:
        lowered = suggestion.lower()
        if suggestion in picked or not any(k in lowered for k in PRIORITY_KEYWORDS):
            continue
        picked.append(suggestion)
        if len(picked) == limit:
            break
    return picked


def summarize(score: int, grade: str) -> str:
    return f"Overall score: {score} ({grade})\n{_GRADE_MESSAGES[grade]}"


def aggregate(
    outcomes: Sequence[AnalyzerOutcome],
    failures: Sequence[ModuleFailure] = (),
) -> AggregateResult:
    """Собирает AggregateResult из результатов модулей (в порядке регистрации)."""
    per_module: Dict[str, int] = {o.module_name: o.score for o in outcomes}
    overall = calculate_overall_score(per_module)
    grade = calculate_grade(overall)
    pooled = [s for o in outcomes for s in o.suggestions]
    return AggregateResult(
        overall_score=overall,
        grade=grade,
        per_module_scores=per_module,
        priority_suggestions=tuple(priority_suggestions(pooled)),
        summary=summarize(overall, grade),
        failed_modules={f.module_name: f.error for f in failures},
    )
