# File: site_auditor/report/__init__.py
"""site_auditor.report: генерация отчётов (JSON и HTML) для CLI и тестов."""

from site_auditor.report.html_report import DEFAULT_TEMPLATE_DIR, render_html
from site_auditor.report.json_report import render_json

__all__ = ["render_json", "render_html", "DEFAULT_TEMPLATE_DIR"]
