# cli.py

"""
Запуск SiteAuditor из корня репозитория без установки пакета.

Пример запуска:
    python cli.py --config configs/default.yaml audit https://example.com --json reports/report.json --html reports/report.html
"""
from site_auditor.cli import cli


if __name__ == '__main__':
    cli()
