# === FILE: site_auditor/models.py ===
"""
Data models for SiteAuditor.

Python attributes are snake_case; :meth:`to_dict` of every model returns the
persisted/wire shape with camelCase field names, as consumed by the report
renderers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from site_auditor.config import AnalysisOptions

__all__ = [
    "JobStatus",
    "AnalysisJob",
    "PageRecord",
    "Issue",
    "AnalyzerOutcome",
    "ModuleFailure",
    "AggregateResult",
    "utcnow",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@dataclass(slots=True, frozen=True)
class PageRecord:
    """One crawled URL of a run. Immutable once created."""

    url: str
    depth: int
    status_code: int
    load_time_ms: float
    content_type: str
    size_bytes: int
    title: str = ""
    parent_url: Optional[str] = None
    links: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()
    # kept for the analyzers, not persisted on the wire
    html: str = field(default="", repr=False, compare=False)
    headers: Mapping[str, str] = field(default_factory=dict, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def error(
        cls,
        url: str,
        depth: int,
        message: str,
        *,
        parent_url: Optional[str] = None,
        load_time_ms: float = 0.0,
    ) -> PageRecord:
        """Record for a page whose fetch or extraction failed."""
        return cls(
            url=url,
            depth=depth,
            status_code=0,
            load_time_ms=load_time_ms,
            content_type="error",
            size_bytes=0,
            title="Error",
            parent_url=parent_url,
            errors=(message or "Unknown error",),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "depth": self.depth,
            "parentUrl": self.parent_url,
            "statusCode": self.status_code,
            "loadTimeMs": self.load_time_ms,
            "contentType": self.content_type,
            "sizeBytes": self.size_bytes,
            "links": list(self.links),
            "images": list(self.images),
            "errors": list(self.errors),
        }


@dataclass(slots=True)
class Issue:
    severity: str
    message: str
    location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"severity": self.severity, "message": self.message}
        if self.location is not None:
            data["location"] = self.location
        return data


@dataclass(slots=True)
class AnalyzerOutcome:
    """Result of one analyzer module for one run."""

    module_name: str
    score: int
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.score = max(0, min(100, int(round(self.score))))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moduleName": self.module_name,
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": list(self.suggestions),
            "details": dict(self.details),
        }


@dataclass(slots=True, frozen=True)
class ModuleFailure:
    module_name: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"moduleName": self.module_name, "error": self.error}


@dataclass(slots=True, frozen=True)
class AggregateResult:
    """Weighted score of one completed run."""

    overall_score: int
    grade: str
    per_module_scores: Mapping[str, int]
    priority_suggestions: Tuple[str, ...] = ()
    summary: str = ""
    failed_modules: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "grade": self.grade,
            "perModuleScores": dict(self.per_module_scores),
            "prioritySuggestions": list(self.priority_suggestions),
            "summary": self.summary,
            "failedModules": dict(self.failed_modules),
        }


@dataclass(slots=True)
class AnalysisJob:
    """One submitted URL and the lifecycle of its analysis run."""

    id: str
    url: str
    options: AnalysisOptions = field(default_factory=AnalysisOptions)
    status: JobStatus = JobStatus.PENDING
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    crawled_page_count: int = 0
    total_page_estimate: int = 0
    error_count: int = 0
    aggregate_result: Optional[AggregateResult] = None
    error: Optional[str] = None
    attempts: int = 0
    progress: int = 0
    outcomes: Dict[str, AnalyzerOutcome] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "options": self.options.to_dict(),
            "status": self.status.value,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "crawledPageCount": self.crawled_page_count,
            "totalPageEstimate": self.total_page_estimate,
            "errorCount": self.error_count,
            "aggregateResult": self.aggregate_result.to_dict() if self.aggregate_result else None,
            "error": self.error,
            "attempts": self.attempts,
            "progress": self.progress,
        }
