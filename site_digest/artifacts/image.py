"""Image artifacts: a fixed-size JPEG thumbnail cut from a page's representative image.

Pipeline for one page::

    fetch page -> candidate images -> first candidate -> download
               -> centre crop to the target ratio -> exact resize -> JPEG
"""
from __future__ import annotations

import asyncio
import io
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError

from site_digest.config import ImageConfig
from site_digest.crawler.fetcher import Fetcher
from site_digest.errors import (
    FileWriteError,
    HttpStatusError,
    ImageDecodeError,
    ImageDownloadError,
    NetworkError,
    NoImagesFoundError,
)
from site_digest.logger import logger
from site_digest.parser.html_parser import CandidateImage, extract_candidate_images
from site_digest.utils import UNTITLED, ensure_directory, hostname_of, sanitize

__all__ = (
    "CropGeometry",
    "ImageDimensions",
    "ImageArtifact",
    "select_representative_image",
    "compute_crop_geometry",
    "generate_image_filename",
    "read_image_size",
    "crop_and_save",
    "ImageCropper",
)


@dataclass(frozen=True, slots=True)
class CropGeometry:
    width: int
    height: int
    x: int
    y: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) as Pillow expects it."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True, slots=True)
class ImageDimensions:
    width: int
    height: int
    format: str = "jpeg"


@dataclass(slots=True)
class ImageArtifact:
    """What :meth:`ImageCropper.process_page` produced for one page."""

    page_url: str
    original_url: str
    cropped_path: Path
    filename: str
    dimensions: ImageDimensions
    source_alt: str
    source_title: str
    selector: str
    source_type: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def select_representative_image(images: Sequence[CandidateImage]) -> Optional[CandidateImage]:
    """First candidate wins; the extractor already puts banner images first."""
    return images[0] if images else None


def compute_crop_geometry(
    original_width: int,
    original_height: int,
    target_width: int,
    target_height: int,
) -> CropGeometry:
    """Largest centred rectangle of the target aspect ratio inside the original image."""
    if min(original_width, original_height, target_width, target_height) <= 0:
        raise ValueError("Image and target dimensions must be positive")

    target_ratio = target_width / target_height
    image_ratio = original_width / original_height

    if image_ratio > target_ratio:
        # wider than the target: keep full height, trim the sides
        crop_height = original_height
        crop_width = max(1, min(_round_half_up(original_height * target_ratio), original_width))
        crop_x = _round_half_up((original_width - crop_width) / 2)
        crop_y = 0
    else:
        # taller (or equal): keep full width, trim top and bottom
        crop_width = original_width
        crop_height = max(1, min(_round_half_up(original_width / target_ratio), original_height))
        crop_x = 0
        crop_y = _round_half_up((original_height - crop_height) / 2)

    return CropGeometry(crop_width, crop_height, crop_x, crop_y)


def generate_image_filename(
    page_title: Optional[str],
    page_url: str,
    timestamp_ms: Optional[int] = None,
) -> str:
    """``{host}_{title}_{epoch ms}.jpg``; ``cropped_image_{epoch ms}.jpg`` if the URL is unusable."""
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    if not isinstance(page_url, str) or not page_url.strip():
        return f"cropped_image_{stamp}.jpg"
    try:
        host = sanitize(hostname_of(page_url) or "unknown")
    except (TypeError, ValueError, AttributeError):
        return f"cropped_image_{stamp}.jpg"
    title = sanitize(page_title) if page_title and page_title.strip() else UNTITLED
    return f"{host}_{title}_{stamp}.jpg"


def read_image_size(data: bytes) -> Tuple[int, int]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Failed to get image size: {exc}") from exc


def crop_and_save(
    data: bytes,
    geometry: CropGeometry,
    width: int,
    height: int,
    quality: int,
    output_path: Union[str, Path],
) -> ImageDimensions:
    """Crop, force-resize to exactly ``width`` x ``height`` and write a JPEG.

    Blocking; the cropper runs it in a worker thread.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            thumb = img.crop(geometry.box).resize((width, height), Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Failed to decode image: {exc}") from exc

    if thumb.mode != "RGB":
        thumb = thumb.convert("RGB")

    try:
        thumb.save(output_path, format="JPEG", quality=quality)
    except OSError as exc:
        raise FileWriteError(output_path, f"Failed to save image: {exc}") from exc
    return ImageDimensions(width, height, "jpeg")


class ImageCropper:
    """Produces one thumbnail per page with the given fetcher and settings."""

    def __init__(self, fetcher: Fetcher, config: ImageConfig) -> None:
        self.fetcher = fetcher
        self.config = config

    async def find_images(self, page_url: str) -> list[CandidateImage]:
        page = await self.fetcher.fetch_page(page_url)
        return extract_candidate_images(page.content, page_url, self.config.banner_selector)

    async def download(self, image_url: str) -> bytes:
        logger.info("Downloading image: %s", image_url)
        try:
            return await self.fetcher.fetch_bytes(image_url)
        except HttpStatusError as exc:
            raise ImageDownloadError(str(exc)) from exc
        except NetworkError as exc:
            raise ImageDownloadError(f"Failed to download image: {exc.reason}") from exc

    async def crop_image(self, image_url: str, output_path: Path) -> ImageDimensions:
        data = await self.download(image_url)
        original_width, original_height = read_image_size(data)
        logger.info("Original dimensions: %dx%d", original_width, original_height)

        geometry = compute_crop_geometry(
            original_width, original_height, self.config.width, self.config.height
        )
        logger.info("Cropping image to %dx%d", self.config.width, self.config.height)
        dimensions = await asyncio.to_thread(
            crop_and_save,
            data,
            geometry,
            self.config.width,
            self.config.height,
            self.config.quality,
            output_path,
        )
        logger.info("Cropped image saved: %s", output_path)
        return dimensions

    async def process_page(self, page_url: str) -> ImageArtifact:
        ensure_directory(self.config.output_dir)

        images = await self.find_images(page_url)
        chosen = select_representative_image(images)
        if chosen is None:
            raise NoImagesFoundError(f"No images found on {page_url}")

        filename = generate_image_filename(chosen.page_title, page_url)
        output_path = Path(self.config.output_dir) / filename
        dimensions = await self.crop_image(chosen.url, output_path)

        return ImageArtifact(
            page_url=page_url,
            original_url=chosen.url,
            cropped_path=output_path,
            filename=filename,
            dimensions=dimensions,
            source_alt=chosen.alt,
            source_title=chosen.title,
            selector=chosen.selector,
            source_type=chosen.source.value,
        )
