# File: tests/test_repository.py
import pytest

from conftest import BASE, make_page
from site_auditor.aggregator import aggregate
from site_auditor.config import AnalysisOptions
from site_auditor.exceptions import JobNotFoundError
from site_auditor.models import AnalyzerOutcome, JobStatus, PageRecord, utcnow
from site_auditor.repository import InMemoryReportRepository


@pytest.mark.asyncio()
async def test_job_lifecycle():
    repo = InMemoryReportRepository()
    job_id = await repo.create_job(f"{BASE}/", AnalysisOptions(max_pages=10))

    job = await repo.get_job(job_id)
    assert job.status is JobStatus.PENDING
    assert job.options.max_pages == 10
    assert job.completed_at is None

    await repo.update_job_status(job_id, JobStatus.PROCESSING, attempts=1)
    await repo.update_job_progress(job_id, 3, 13, 23)
    await repo.update_job_progress(job_id, 4, 14, 10)
    job = await repo.get_job(job_id)
    assert job.status is JobStatus.PROCESSING
    assert (job.crawled_page_count, job.total_page_estimate) == (4, 14)
    assert job.progress == 23

    finished = utcnow()
    await repo.update_job_status(job_id, JobStatus.FAILED, completed_at=finished, error="boom")
    job = await repo.get_job(job_id)
    assert job.is_terminal
    assert job.completed_at == finished
    assert job.error == "boom"
    assert job.attempts == 1


@pytest.mark.asyncio()
async def test_page_records_replace_and_count_errors():
    repo = InMemoryReportRepository()
    job_id = await repo.create_job(f"{BASE}/", AnalysisOptions())

    await repo.save_page_records(job_id, [make_page()])
    await repo.save_page_records(job_id, [make_page(), PageRecord.error(f"{BASE}/x", 1, "timeout")])

    pages = await repo.get_page_records(job_id)
    assert len(pages) == 2
    assert (await repo.get_job(job_id)).error_count == 1


@pytest.mark.asyncio()
async def test_returned_jobs_are_copies():
    repo = InMemoryReportRepository()
    job_id = await repo.create_job(f"{BASE}/", AnalysisOptions())
    outcome = AnalyzerOutcome("seo", 70)
    await repo.save_aggregate(job_id, aggregate([outcome]), {"seo": outcome})

    job = await repo.get_job(job_id)
    job.status = JobStatus.COMPLETED
    job.outcomes["seo"].score = 0

    stored = await repo.get_job(job_id)
    assert stored.status is JobStatus.PENDING
    assert stored.outcomes["seo"].score == 70
    assert stored.aggregate_result.overall_score == 70


@pytest.mark.asyncio()
async def test_missing_job():
    repo = InMemoryReportRepository()
    with pytest.raises(JobNotFoundError):
        await repo.get_job("nope")
    with pytest.raises(KeyError):
        await repo.update_job_status("nope", JobStatus.FAILED)
    with pytest.raises(JobNotFoundError):
        await repo.get_page_records("nope")


def test_job_wire_shape():
    page = make_page()
    assert set(page.to_dict()) == {
        "url", "title", "depth", "parentUrl", "statusCode", "loadTimeMs",
        "contentType", "sizeBytes", "links", "images", "errors",
    }
