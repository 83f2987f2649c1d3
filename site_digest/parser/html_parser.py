"""HTML extraction helpers for SiteDigest.

Two questions are asked of a fetched page:

* text metadata — document ``<title>`` and description, with placeholders
  when either is missing;
* candidate images — the banner ``background-image`` declared inline on
  the configured banner selector, or every ``<img src>`` when the page
  has no banner image.

Both degrade to defaults on broken markup instead of raising.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bs4 import BeautifulSoup

from site_digest.errors import ParseError
from site_digest.logger import logger
from site_digest.utils import resolve_url

__all__: Sequence[str] = (
    "NO_TITLE",
    "NO_DESCRIPTION",
    "DEFAULT_BANNER_SELECTOR",
    "ImageSource",
    "CandidateImage",
    "PageMetadata",
    "load_document",
    "extract_text_metadata",
    "extract_background_image_url",
    "extract_candidate_images",
)

NO_TITLE = "No title found"
NO_DESCRIPTION = "No description found"
DEFAULT_BANNER_SELECTOR = ".breadcrumb-banner"

_BACKGROUND_IMAGE_RE = re.compile(
    r"background-image\s*:\s*url\s*\(\s*['\"]?([^'\")]+)['\"]?\s*\)",
    re.IGNORECASE,
)


class ImageSource(str, Enum):
    BACKGROUND_IMAGE = "background-image"
    IMG_SRC = "src"


@dataclass(slots=True)
class PageMetadata:
    title: str
    description: str
    source_url: str = ""


@dataclass(slots=True)
class CandidateImage:
    """An absolutized image URL found on a page, with its provenance."""

    url: str
    alt: str
    title: str
    selector: str
    source: ImageSource
    page_title: str


def load_document(html: object) -> BeautifulSoup:
    """Parse markup with the tolerant stdlib-backed parser."""
    if not isinstance(html, (str, bytes)):
        raise ParseError(f"Expected HTML markup, got {type(html).__name__}")
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as exc:  # pragma: no cover - html.parser is very lenient
        raise ParseError(f"Failed to parse HTML: {exc}") from exc


def _page_title(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return tag.get_text(strip=True) if tag else ""


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    content = tag.get("content") or ""
    return content.strip() if isinstance(content, str) else ""


def extract_text_metadata(html: object, source_url: str = "") -> PageMetadata:
    """Return title and description, preferring ``meta[name=description]`` over ``og:description``."""
    try:
        soup = load_document(html)
    except ParseError as exc:
        logger.warning("Cannot read page %s: %s", source_url or "<inline>", exc)
        return PageMetadata(NO_TITLE, NO_DESCRIPTION, source_url)

    title = _page_title(soup)
    description = _meta_content(soup, name="description") or _meta_content(
        soup, property="og:description"
    )
    return PageMetadata(
        title=title or NO_TITLE,
        description=description or NO_DESCRIPTION,
        source_url=source_url,
    )


def extract_background_image_url(style: Optional[str]) -> Optional[str]:
    """Pull the ``url(...)`` out of a ``background-image`` declaration."""
    if not style:
        return None
    match = _BACKGROUND_IMAGE_RE.search(style)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def extract_candidate_images(
    html: object,
    page_url: str,
    banner_selector: str = DEFAULT_BANNER_SELECTOR,
) -> list[CandidateImage]:
    """List candidate images in document order.

    Banner background images come first; ``<img>`` tags are only looked at
    when no banner image exists. An image-less page gives an empty list.
    """
    try:
        soup = load_document(html)
    except ParseError as exc:
        logger.warning("Cannot read page %s: %s", page_url, exc)
        return []

    page_title = _page_title(soup)
    logger.info("Page title: %s", page_title or "[No title found]")

    images: list[CandidateImage] = []
    for element in soup.select(banner_selector):
        raw = extract_background_image_url(element.get("style"))
        if not raw:
            continue
        url = resolve_url(raw, page_url)
        images.append(
            CandidateImage(
                url=url,
                alt=f"Background image from {banner_selector}",
                title="Banner background",
                selector=banner_selector,
                source=ImageSource.BACKGROUND_IMAGE,
                page_title=page_title,
            )
        )
        logger.info("Found background-image in %s: %s", banner_selector, url)

    if not images:
        logger.info("No %s background images found, trying regular img tags...", banner_selector)
        for tag in soup.find_all("img"):
            src = tag.get("src")
            if not src or not src.strip():
                continue
            images.append(
                CandidateImage(
                    url=resolve_url(src, page_url),
                    alt=tag.get("alt") or "",
                    title=tag.get("title") or "",
                    selector="img",
                    source=ImageSource.IMG_SRC,
                    page_title=page_title,
                )
            )

    logger.info("Found %d images total", len(images))
    return images
