# File: site_digest/engine.py
"""site_digest.engine: Запуск конвейера по сайтам и сбор результатов пакета."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, List, Optional

from site_digest.aggregator import BatchReport, SiteResult, StepOutcome
from site_digest.artifacts.image import ImageCropper
from site_digest.artifacts.text import format_text_artifact, write_text_artifact
from site_digest.config import DigestConfig
from site_digest.crawler.fetcher import Fetcher
from site_digest.errors import InvalidInputError, RenderError, SiteDigestError
from site_digest.logger import logger
from site_digest.parser.html_parser import extract_text_metadata
from site_digest.screenshot import (
    PlaywrightRenderer,
    Renderer,
    UnavailableRenderer,
    capture_screenshot,
)
from site_digest.utils import clean_name, empty_directory, ensure_directory

__all__ = [
    "SiteWorker",
    "validate_sites",
    "run_step",
    "run_text_pipeline",
    "run_site",
    "run_image_site",
    "run_batch",
    "start_digest",
    "start_crop",
]

SiteWorker = Callable[[str], Awaitable[SiteResult]]


def validate_sites(urls: Any) -> List[str]:
    """Проверяет, что список сайтов — непустой список строк. Иначе InvalidInputError."""
    if not isinstance(urls, (list, tuple)) or not urls:
        raise InvalidInputError("No URLs found in the site list")
    bad = [u for u in urls if not isinstance(u, str) or not u.strip()]
    if bad:
        raise InvalidInputError(f"Site list contains invalid entries: {bad!r}")
    return list(urls)


async def run_step(url: str, step: str, coro: Awaitable[str]) -> StepOutcome:
    """
    Выполняет подшаг и превращает его ошибку в значение.

    Ошибки здесь не логируются на уровне ERROR: это делает log_failures
    по итоговому отчёту, один раз на ошибку.
    """
    try:
        message = await coro
    except SiteDigestError as exc:
        return StepOutcome(step, error=exc)
    except Exception as exc:
        logger.debug("Unexpected error for %s [%s]", url, step, exc_info=True)
        return StepOutcome(step, error=exc)
    return StepOutcome(step, message=message)


async def run_text_pipeline(url: str, fetcher: Fetcher, config: DigestConfig) -> str:
    """fetch -> title/description -> markdown -> файл."""
    page = await fetcher.fetch_page(url)
    metadata = extract_text_metadata(page.content, url)
    content = format_text_artifact(metadata, url, config.formats)
    path = await write_text_artifact(content, url, config.output_dir)
    return f"The file {path.name} was created!"


async def run_site(
    url: str,
    fetcher: Fetcher,
    renderer: Optional[Renderer],
    config: DigestConfig,
) -> SiteResult:
    """Скриншот и текстовый конвейер параллельно; оба итога сохраняются отдельно."""
    steps = [run_step(url, "text", run_text_pipeline(url, fetcher, config))]
    if renderer is not None and config.screenshot.enabled:
        steps.insert(0, run_step(url, "screenshot", capture_screenshot(url, renderer, config)))
    outcomes = await asyncio.gather(*steps)
    return SiteResult(url, list(outcomes))


async def run_image_site(url: str, cropper: ImageCropper) -> SiteResult:
    async def _image() -> str:
        artifact = await cropper.process_page(url)
        dims = artifact.dimensions
        return (
            f"{clean_name(url)}: saved {artifact.cropped_path} "
            f"({dims.width}x{dims.height}) from {artifact.original_url}"
        )

    return SiteResult(url, [await run_step(url, "image", _image())])


async def _guarded(url: str, worker: SiteWorker) -> SiteResult:
    try:
        return await worker(url)
    except Exception as exc:
        logger.debug("Task for %s failed", url, exc_info=True)
        return SiteResult.failed(url, exc)


async def run_batch(urls: Any, worker: SiteWorker) -> BatchReport:
    """
    Запускает *worker* для каждого URL одновременно.

    Ошибка одного сайта не влияет на остальные; ``results[i]`` всегда
    соответствует ``urls[i]``. Пустой или некорректный список — InvalidInputError
    ещё до запуска задач.
    """
    sites = validate_sites(urls)
    logger.info("Starting batch for %d sites…", len(sites))
    results = await asyncio.gather(*(_guarded(url, worker) for url in sites))
    report = BatchReport(list(results))
    logger.info("Batch finished: %d/%d sites succeeded", report.succeeded, len(report.results))
    return report


async def start_digest(config: DigestConfig, renderer: Optional[Renderer] = None) -> BatchReport:
    """Текстовый инструмент: .md и скриншот для каждого сайта из конфига."""
    sites = validate_sites(config.sites)
    ensure_directory(config.output_dir)

    async with AsyncExitStack() as stack:
        fetcher = await stack.enter_async_context(Fetcher(config))
        if renderer is None and config.screenshot.enabled:
            try:
                renderer = await stack.enter_async_context(
                    PlaywrightRenderer(config.timeout, config.user_agent)
                )
            except RenderError as exc:
                logger.error("Screenshots unavailable: %s", exc)
                renderer = UnavailableRenderer(exc)

        async def worker(url: str) -> SiteResult:
            return await run_site(url, fetcher, renderer, config)

        return await run_batch(sites, worker)


async def start_crop(config: DigestConfig) -> BatchReport:
    """Инструмент миниатюр: одна JPEG-миниатюра на сайт."""
    sites = validate_sites(config.sites)
    logger.info("Starting image crop process for %d sites...", len(sites))
    if config.image.clear_output:
        empty_directory(config.image.output_dir)
    ensure_directory(config.image.output_dir)

    async with Fetcher(config) as fetcher:
        cropper = ImageCropper(fetcher, config.image)

        async def worker(url: str) -> SiteResult:
            return await run_image_site(url, cropper)

        return await run_batch(sites, worker)
