# === FILE: site_auditor/logger.py ===
"""Logging setup for **SiteAuditor**.

Every record carries ``job_id``: the id of the analysis job being processed
when the record was emitted, or ``-`` outside of a job. The queue binds it
with :func:`job_context`; tasks and worker threads started inside inherit it
through :mod:`contextvars`, so crawler and analyzer lines are attributed to
their job without passing the id around::

    with job_context(job_id):
        logger.info("Crawling")   # ... | job=3f2a... | Crawling
"""
from __future__ import annotations

import contextlib
import contextvars
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterator, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | job=%(job_id)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteAuditor"
NO_JOB: Final[str] = "-"

_LevelT = Union[int, str]

_current_job: contextvars.ContextVar[str] = contextvars.ContextVar("site_auditor_job", default=NO_JOB)


class JobContextFilter(logging.Filter):
    """Stamps ``record.job_id`` from the active job context."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "job_id"):
            record.job_id = _current_job.get()
        return True


@contextlib.contextmanager
def job_context(job_id: str) -> Iterator[None]:
    """Attribute records emitted inside the block to *job_id*."""
    token = _current_job.set(job_id)
    try:
        yield
    finally:
        _current_job.reset(token)


def current_job_id() -> str:
    return _current_job.get()


def _handler(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(JobContextFilter())
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """(Re)configure the project logger: stdout plus an optional rotating file (5 MiB x 3)."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for old in list(lg.handlers):
        lg.removeHandler(old)
        old.close()

    lg.addHandler(_handler(logging.StreamHandler(sys.stdout), log_format))
    if log_file is not None:
        rotating = RotatingFileHandler(str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        lg.addHandler(_handler(rotating, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point used by the CLI."""
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = [
    "logger",
    "configure",
    "init_logging",
    "job_context",
    "current_job_id",
    "JobContextFilter",
    "LOGGER_NAME",
    "DEFAULT_FORMAT",
]
