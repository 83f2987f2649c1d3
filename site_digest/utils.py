# File: site_digest/utils.py
"""site_digest.utils: Имена файлов из URL и заголовков, разрешение URL и работа с папками."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Sequence, Union
from urllib.parse import urljoin, urlparse

from site_digest.logger import logger

__all__: Sequence[str] = (
    "SLUG_MAX_LENGTH",
    "UNTITLED",
    "UNKNOWN_SITE",
    "sanitize",
    "clean_name",
    "hostname_of",
    "resolve_url",
    "ensure_directory",
    "empty_directory",
)

SLUG_MAX_LENGTH = 50
UNTITLED = "untitled"
UNKNOWN_SITE = "unknown-site"

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def sanitize(text: Any) -> str:
    """Превращает произвольную строку в безопасный slug: ``[a-z0-9-]``, не длиннее 50 символов."""
    if not text or not isinstance(text, str):
        return UNTITLED
    slug = _SLUG_PATTERN.sub("-", text.lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or UNTITLED


def hostname_of(uri: str) -> str:
    """Возвращает hostname без ведущего ``www.``; пустая строка, если его нет.

    Бросает ValueError на URL, который urllib не может разобрать.
    """
    hostname = urlparse(uri).hostname or ""
    return hostname.removeprefix("www.")


def clean_name(uri: Any) -> str:
    """Slug для hostname сайта; ``unknown-site`` для пустого или битого URL."""
    if not uri or not isinstance(uri, str):
        return UNKNOWN_SITE
    try:
        hostname = hostname_of(uri)
    except ValueError:
        logger.debug("Cannot parse URL: %r", uri)
        return UNKNOWN_SITE
    if not hostname:
        return UNKNOWN_SITE
    return sanitize(hostname)


def resolve_url(url: str, page_url: str) -> str:
    """Делает URL абсолютным относительно страницы (``//``, ``/`` и относительные пути)."""
    url = url.strip()
    resolved = urljoin(page_url, url)
    if resolved != url:
        logger.debug("Resolved URL: %s -> %s", url, resolved)
    return resolved


def ensure_directory(path: Union[str, Path]) -> Path:
    """Создаёт папку (с родителями), если её ещё нет."""
    p = Path(path)
    if not p.is_dir():
        p.mkdir(parents=True, exist_ok=True)
        logger.info("Created directory: %s", p)
    return p


def empty_directory(path: Union[str, Path]) -> int:
    """Удаляет файлы (не подпапки) из папки. Возвращает число удалённых файлов.

    Ошибки только логируются: очистка не должна останавливать запуск.
    """
    p = Path(path)
    if not p.is_dir():
        return 0
    removed = 0
    try:
        for entry in p.iterdir():
            if entry.is_file():
                entry.unlink()
                removed += 1
    except OSError as exc:
        logger.warning("Could not empty directory %s: %s", p, exc)
    if removed:
        logger.info("Removed %d existing files from %s", removed, p)
    return removed
