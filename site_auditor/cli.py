# === FILE: site_auditor/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска аудита SiteAuditor через командную строку.

Команды:
  audit URL  Обойти сайт, проанализировать страницы и вывести/сохранить отчёт
  config     Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования (доступно поле %(job_id)s)

Команда audit опции:
  --max-depth INT     Глубина обхода (0..10)
  --max-pages INT     Макс. число страниц (1..1000)
  --skip-images / --skip-css / --skip-js
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблонами (по умолчанию шаблон из пакета)
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --timeout SEC       Таймаут всего аудита (секунд)

Дополнительно:
  --version, -v       Показать версию SiteAuditor

Пример:
  site_auditor audit https://example.com --max-depth 2 --json report.json --pretty
"""
import sys
import asyncio
from pathlib import Path

import click
from pydantic import ValidationError

from site_auditor import __version__
from site_auditor.config import AnalysisOptions, load_config
from site_auditor.logger import DEFAULT_FORMAT, init_logging, logger
from site_auditor.engine import start_audit
from site_auditor.report.json_report import render_json
from site_auditor.report.html_report import render_html

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAuditor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteAuditor CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('audit', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-depth', 'max_depth', type=click.IntRange(0, 10), default=None,
              help='Глубина обхода (override default_options.maxDepth)')
@click.option('--max-pages', 'max_pages', type=click.IntRange(1, 1000), default=None,
              help='Макс. число страниц (override default_options.maxPages)')
@click.option('--skip-images', is_flag=True, help='Не анализировать изображения')
@click.option('--skip-css', is_flag=True, help='Не учитывать стили')
@click.option('--skip-js', is_flag=True, help='Не учитывать скрипты')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--timeout', 'timeout',
    type=float,
    default=None,
    help='Таймаут всего аудита (секунд)'
)
@click.pass_context
def audit(ctx, url, max_depth, max_pages, skip_images, skip_css, skip_js,
          json_output, html_output, template_dir, pretty, timeout):
    """Запустить аудит сайта и сгенерировать отчёты."""
    cfg = ctx.obj['config']
    overrides = {
        'max_depth': max_depth,
        'max_pages': max_pages,
        'skip_images': skip_images,
        'skip_css': skip_css,
        'skip_js': skip_js,
    }
    options = AnalysisOptions.model_validate({
        **cfg.default_options.model_dump(),
        **{k: v for k, v in overrides.items() if v is not None and v is not False},
    })

    logger.info('Starting audit of %s', url)
    try:
        report = asyncio.run(start_audit(cfg, url, options, timeout))
    except asyncio.TimeoutError:
        print_error(f'Аудит не завершён за {timeout} секунд')
    except ValueError as e:
        print_error(f'Некорректный запрос: {e}')

    # Если не сохраняем в файл, печатаем в stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))

    # JSON-отчёт
    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    # HTML-отчёт
    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except OSError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')

    job = report.job
    if job.status.value != 'completed':
        print_error(f'Аудит завершился со статусом {job.status.value}: {job.error or "no details"}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2, by_alias=True))


if __name__ == "__main__":
    cli()
