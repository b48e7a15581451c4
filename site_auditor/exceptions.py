"""Exception hierarchy shared by the crawler, the analyzers and the job queue."""
from __future__ import annotations

from typing import Optional

__all__ = [
    "SiteAuditorError",
    "FetchError",
    "FetchTimeoutError",
    "NetworkUnreachableError",
    "HTTPStatusError",
    "ExtractionError",
    "ModuleError",
    "JobAttemptError",
    "RunCancelledError",
    "JobNotFoundError",
]


class SiteAuditorError(Exception):
    """Base class for all SiteAuditor errors."""


class FetchError(SiteAuditorError):
    """A page could not be loaded."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url
        self.message = message


class FetchTimeoutError(FetchError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(url, f"Navigation timeout of {timeout:g}s exceeded for {url}")
        self.timeout = timeout


class NetworkUnreachableError(FetchError):
    pass


class HTTPStatusError(FetchError):
    def __init__(self, url: str, status: int) -> None:
        super().__init__(url, f"HTTP {status} for {url}")
        self.status = status


class ExtractionError(SiteAuditorError):
    """The page loaded but its content could not be parsed."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class ModuleError(SiteAuditorError):
    """An analyzer failure that fails the whole run."""

    def __init__(self, module_name: str, cause: Optional[BaseException] = None, message: str = "") -> None:
        text = message or f"Analyzer '{module_name}' failed: {cause}"
        super().__init__(text)
        self.module_name = module_name
        self.cause = cause


class JobAttemptError(SiteAuditorError):
    """Error raised by one attempt of a queued job."""

    def __init__(self, job_id: str, attempt: int, cause: BaseException) -> None:
        super().__init__(f"Job {job_id} attempt {attempt} failed: {cause}")
        self.job_id = job_id
        self.attempt = attempt
        self.cause = cause


class RunCancelledError(SiteAuditorError):
    """The job was cancelled while it was running."""


class JobNotFoundError(SiteAuditorError, KeyError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id

    def __str__(self) -> str:
        return str(self.args[0])
