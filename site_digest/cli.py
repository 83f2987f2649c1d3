# === FILE: site_digest/cli.py ===
#!/usr/bin/env python3
"""
Точки входа SiteDigest для командной строки.

Команды:
  site-digest   Для каждого сайта из конфига: скриншот + .md с заголовком и описанием
  site-crop     Для каждого сайта из конфига: JPEG-миниатюра из главного изображения

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --json PATH         Сохранить JSON-отчёт о запуске в файл
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования
  --version, -v       Показать версию SiteDigest

Код выхода 1 только при ошибке конфига или пустом списке сайтов;
ошибки отдельных сайтов логируются и на код выхода не влияют.
"""
import asyncio
import sys
from pathlib import Path

import click

from site_digest import __version__
from site_digest.aggregator import BatchReport, log_failures
from site_digest.config import load_config
from site_digest.engine import start_crop, start_digest
from site_digest.errors import InvalidInputError
from site_digest.logger import DEFAULT_FORMAT, init_logging
from site_digest.report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def common_options(func):
    """Опции, общие для обоих инструментов."""
    decorators = [
        click.version_option(__version__, '--version', '-v', message='SiteDigest, version %(version)s'),
        click.option(
            '--config', '-c', 'config_path',
            default='configs/default.yaml',
            show_default=True,
            type=click.Path(dir_okay=False, path_type=Path),
            help='Путь к файлу конфигурации YAML/JSON.'
        ),
        click.option(
            '--json', '-j', 'json_output',
            default=None,
            type=click.Path(writable=True, dir_okay=False, path_type=Path),
            help='Сохранить JSON-отчёт в файл'
        ),
        click.option(
            '--log-level', 'log_level',
            default='INFO', show_default=True,
            type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
            help='Уровень логирования'
        ),
        click.option(
            '--log-file', 'log_file',
            default=None,
            type=click.Path(writable=True, dir_okay=False, path_type=Path),
            help='Путь к файлу логов (stdout, если не указан)'
        ),
        click.option(
            '--log-format', 'log_format',
            default=DEFAULT_FORMAT,
            help='Строка формата для логов'
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _run(runner, config_path, json_output, log_level, log_file, log_format):
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')

    try:
        report: BatchReport = asyncio.run(runner(cfg))
    except InvalidInputError as e:
        print_error(str(e))

    for message in report.messages:
        click.echo(message)
    log_failures(report)

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    click.echo('Everything OK')
    click.echo(f'{report.succeeded}/{len(report.results)} sites succeeded')


@click.command('site-digest', context_settings=CONTEXT_SETTINGS)
@common_options
def digest_cli(config_path, json_output, log_level, log_file, log_format):
    """Скриншоты и markdown-файлы для списка сайтов."""
    _run(start_digest, config_path, json_output, log_level, log_file, log_format)


@click.command('site-crop', context_settings=CONTEXT_SETTINGS)
@common_options
def crop_cli(config_path, json_output, log_level, log_file, log_format):
    """JPEG-миниатюры для списка сайтов."""
    _run(start_crop, config_path, json_output, log_level, log_file, log_format)


if __name__ == "__main__":
    digest_cli()
