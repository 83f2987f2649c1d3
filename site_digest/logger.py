"""Logging setup shared by both SiteDigest tools.

Every module logs through the one named logger, imported as
``from site_digest.logger import logger``. It writes to stdout and, when a
path is given, also to a rotating file. The CLI calls :func:`init_logging`
with its ``--log-*`` options; tests call :func:`configure` to reset it.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

# Format and logger name
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteDigest"
_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


# Handlers

def _stdout_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(file),
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


# Setup
def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Sets the level and handlers of the SiteDigest logger and returns it.

    A console handler is always added; *log_file* adds a rotating file next
    to it. With ``replace_handlers=False`` earlier handlers are kept.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        lg.handlers.clear()

    lg.addHandler(_stdout_handler(log_format))

    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """What the CLI calls once per run: always replaces the handlers."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


# Module-level logger, console only until the CLI reconfigures it
logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
