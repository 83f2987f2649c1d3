"""
Exceptions raised by the SiteDigest pipeline.

Only :class:`InvalidInputError` aborts a whole run; every other error is
captured per site by the batch orchestrator and reported.
"""
from __future__ import annotations

from pathlib import Path
from typing import Union

__all__ = (
    "SiteDigestError",
    "InvalidInputError",
    "NetworkError",
    "HttpStatusError",
    "ParseError",
    "RenderError",
    "ImageDownloadError",
    "ImageDecodeError",
    "NoImagesFoundError",
    "FileWriteError",
)


class SiteDigestError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(SiteDigestError):
    """The site list is empty or malformed."""


class NetworkError(SiteDigestError):
    """Transport failure: DNS, connection reset, timeout..."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Network error for {url}: {reason}")
        self.url = url
        self.reason = reason


class HttpStatusError(SiteDigestError):
    """The server answered with anything other than 200."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"HTTP {status} - {url}")
        self.url = url
        self.status = status


class ParseError(SiteDigestError):
    """The HTML document could not be loaded at all."""


class RenderError(SiteDigestError):
    """The screenshot renderer failed."""


class ImageDownloadError(SiteDigestError):
    """The source image could not be downloaded."""


class ImageDecodeError(SiteDigestError):
    """The downloaded bytes are not a readable image."""


class NoImagesFoundError(SiteDigestError):
    """The page yielded no candidate images."""


class FileWriteError(SiteDigestError):
    """An artifact could not be written to disk."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = Path(path)
        self.reason = reason
