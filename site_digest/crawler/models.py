# site_digest/crawler/models.py
"""
Data models for the SiteDigest fetcher.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PageData:
    """A fetched page: final URL, HTTP status and decoded HTML body."""

    url: str
    status: int
    content: str
