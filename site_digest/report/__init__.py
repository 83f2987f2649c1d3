# File: site_digest/report/__init__.py
"""site_digest.report: Сохранение отчёта о пакетном запуске, используется CLI и тестами."""

from site_digest.report.json_report import render_json

__all__ = ["render_json"]
