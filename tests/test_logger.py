# File: tests/test_logger.py
"""Логи размечаются идентификатором задачи."""
import pytest

from conftest import BASE, FakeFetcher
from site_auditor.logger import configure, current_job_id, init_logging, job_context, logger
from site_auditor.queue import JobQueue
from site_auditor.repository import InMemoryReportRepository


@pytest.fixture()
def log_file(tmp_path):
    path = tmp_path / "audit.log"
    configure(level="INFO", log_file=path)
    yield path
    init_logging(level="WARNING")


def test_job_context_is_scoped(log_file):
    logger.info("before")
    with job_context("job-42"):
        assert current_job_id() == "job-42"
        logger.info("inside")
    logger.info("after")
    assert current_job_id() == "-"

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert "job=- | before" in lines[0]
    assert "job=job-42 | inside" in lines[1]
    assert "job=- | after" in lines[2]


def test_explicit_job_id_wins(log_file):
    with job_context("outer"):
        logger.info("tagged", extra={"job_id": "manual"})
    assert "job=manual | tagged" in log_file.read_text(encoding="utf-8")


@pytest.mark.asyncio()
async def test_queue_tags_crawler_and_analyzer_lines(log_file, fast_config, small_site):
    repo = InMemoryReportRepository()
    async with JobQueue(repo, fast_config, fetcher_factory=lambda job: FakeFetcher(small_site, job.url)) as queue:
        job_id = await queue.submit(f"{BASE}/")
        await queue.wait_for(job_id, 5.0)

    text = log_file.read_text(encoding="utf-8")
    # analyzers run in worker threads and still inherit the job
    assert f"job={job_id} | seo analysis completed" in text
    assert f"job={job_id} | Analysis completed for {BASE}/" in text
