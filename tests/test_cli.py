# File: tests/test_cli.py
"""Тесты для CLI (`site_auditor.cli`) с использованием click.testing.CliRunner.
Проверяют команды `audit`, `config`, `--version`, а также обработку ошибок.
"""
import asyncio
import importlib
import json

import pytest
from click.testing import CliRunner

from conftest import BASE, make_page
from site_auditor.aggregator import aggregate
from site_auditor.cli import cli
from site_auditor.engine import AuditReport
from site_auditor.logger import init_logging
from site_auditor.models import AnalysisJob, AnalyzerOutcome, JobStatus

# The package __init__ re-exports the click group as `site_auditor.cli`,
# shadowing the submodule attribute; fetch the module itself.
cli_module = importlib.import_module("site_auditor.cli")

QUIET = ["--log-level", "ERROR"]


def fake_report(url, options, status=JobStatus.COMPLETED, error=None):
    outcome = AnalyzerOutcome("seo", 90)
    job = AnalysisJob(id="job-1", url=url, options=options, status=status, error=error)
    if status is JobStatus.COMPLETED:
        job.aggregate_result = aggregate([outcome])
        job.outcomes = {"seo": outcome}
    return AuditReport(job=job, pages=[make_page(url)], outcomes=dict(job.outcomes))


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    # CliRunner closes the stream the CLI handler was bound to
    init_logging(level="WARNING")


@pytest.fixture()
def calls(monkeypatch):
    """Патчим start_audit: без сети, запоминаем аргументы."""
    seen = []

    async def fake_audit(cfg, url, options=None, timeout=None):
        seen.append({"cfg": cfg, "url": url, "options": options, "timeout": timeout})
        return fake_report(url, options)

    monkeypatch.setattr(cli_module, "start_audit", fake_audit)
    return seen


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SiteAuditor" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(json.dumps({"crawl_delay": 0.25, "fatal_modules": ["SEO"]}), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["crawl_delay"] == 0.25
    assert data["fatal_modules"] == ["seo"]
    assert data["default_options"]["maxDepth"] == 3


def test_invalid_config_exits(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("traversal: sideways\n", encoding="utf-8")
    result = CliRunner().invoke(cli, QUIET + ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_audit_stdout(calls, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, QUIET + ["audit", f"{BASE}/", "--max-depth", "0", "--skip-js"])
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["job"]["status"] == "completed"
    assert output["pages"][0]["url"] == f"{BASE}/"

    options = calls[0]["options"]
    assert options.max_depth == 0
    assert options.skip_js is True
    assert options.max_pages == 100


def test_audit_json_and_html_files(calls, tmp_path):
    out_json = tmp_path / "out.json"
    out_html = tmp_path / "out.html"
    result = CliRunner().invoke(
        cli, QUIET + ["audit", f"{BASE}/", "--json", str(out_json), "--html", str(out_html), "--pretty"]
    )
    assert result.exit_code == 0
    assert f"JSON report: {out_json}" in result.output
    assert json.loads(out_json.read_text(encoding="utf-8"))["job"]["id"] == "job-1"
    assert "SiteAuditor report" in out_html.read_text(encoding="utf-8")


def test_audit_failed_job_exits_nonzero(monkeypatch):
    async def failing(cfg, url, options=None, timeout=None):
        return fake_report(url, options, status=JobStatus.FAILED, error="ModuleError: all failed")

    monkeypatch.setattr(cli_module, "start_audit", failing)
    result = CliRunner().invoke(cli, QUIET + ["audit", f"{BASE}/"])
    assert result.exit_code == 1
    assert "failed" in result.output


def test_audit_timeout(monkeypatch):
    async def slow(cfg, url, options=None, timeout=None):
        await asyncio.sleep(0)
        raise asyncio.TimeoutError

    monkeypatch.setattr(cli_module, "start_audit", slow)
    result = CliRunner().invoke(cli, QUIET + ["audit", f"{BASE}/", "--timeout", "1"])
    assert result.exit_code != 0
    assert "не завершён" in result.output


def test_audit_rejects_out_of_range_depth(calls):
    result = CliRunner().invoke(cli, QUIET + ["audit", f"{BASE}/", "--max-depth", "11"])
    assert result.exit_code == 2
    assert calls == []
