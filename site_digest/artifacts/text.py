"""Text artifacts: a markdown file with the page title, description and link."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence, Union

from site_digest.config import FormatRule, FormatStyle
from site_digest.errors import FileWriteError
from site_digest.logger import logger
from site_digest.parser.html_parser import PageMetadata
from site_digest.utils import clean_name, sanitize

__all__ = (
    "basic_block",
    "list_item_block",
    "blurb_block",
    "resolve_style",
    "format_text_artifact",
    "text_artifact_path",
    "write_text_artifact",
)


def basic_block(metadata: PageMetadata, site_url: str) -> str:
    return (
        f"Title: {metadata.title}\n\n"
        f"Description: {metadata.description}\n\n"
        f"URL: {site_url}\n\n"
    )


def _link(site_url: str, label: str) -> str:
    return f'<a href="{site_url}" target="_blank"><strong>{label}</strong></a>'


def list_item_block(metadata: PageMetadata, site_url: str) -> str:
    # Only the part before the first "|" is kept: "Post | Blog name" -> "Post".
    title = metadata.title.split("|", 1)[0].strip()
    return f'<li style="text-align: left;">{title} {_link(site_url, "[link]")}</li>'


def blurb_block(metadata: PageMetadata, site_url: str) -> str:
    return (
        f"{_link(site_url, metadata.title)}: {metadata.description} "
        f"{_link(site_url, '[link]')}<br /><br />"
    )


_RENDERERS = {
    FormatStyle.LIST_ITEM: list_item_block,
    FormatStyle.BLURB: blurb_block,
}


def resolve_style(site_url: str, rules: Sequence[FormatRule] = ()) -> FormatStyle:
    """First rule whose marker occurs in *site_url* decides; otherwise a blurb."""
    for rule in rules:
        if rule.matches(site_url):
            logger.debug("Format rule %r matched %s", rule.marker, site_url)
            return rule.style
    return FormatStyle.BLURB


def format_text_artifact(
    metadata: PageMetadata,
    site_url: str,
    rules: Sequence[FormatRule] = (),
) -> str:
    """Basic block followed by the site-formatted HTML block."""
    style = resolve_style(site_url, rules)
    return basic_block(metadata, site_url) + _RENDERERS[style](metadata, site_url)


def text_artifact_path(site_url: str, output_dir: Union[str, Path]) -> Path:
    return Path(output_dir) / f"{sanitize(clean_name(site_url))}.md"


async def write_text_artifact(
    content: str,
    site_url: str,
    output_dir: Union[str, Path],
) -> Path:
    """Write *content* to ``{output_dir}/{name}.md``, replacing any previous file."""
    target = text_artifact_path(site_url, output_dir)
    try:
        await asyncio.to_thread(target.write_text, content, encoding="utf-8")
    except OSError as exc:
        raise FileWriteError(target, exc.strerror or str(exc)) from exc
    logger.info("The file %s was created!", target.name)
    return target
