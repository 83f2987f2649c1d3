# File: tests/test_image_artifact.py
from __future__ import annotations

import pytest
from PIL import Image

from conftest import make_image_bytes
from site_digest.artifacts.image import (
    CropGeometry,
    ImageCropper,
    compute_crop_geometry,
    crop_and_save,
    generate_image_filename,
    read_image_size,
    select_representative_image,
)
from site_digest.crawler.fetcher import Fetcher
from site_digest.errors import (
    FileWriteError,
    HttpStatusError,
    ImageDecodeError,
    ImageDownloadError,
    NoImagesFoundError,
)
from site_digest.parser.html_parser import CandidateImage, ImageSource


# --------------------------------------------------------------------------- #
#                               Crop geometry                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    "original,target,expected",
    [
        ((800, 200), (400, 200), CropGeometry(400, 200, 200, 0)),
        ((300, 600), (400, 200), CropGeometry(300, 150, 0, 225)),
        ((400, 200), (400, 200), CropGeometry(400, 200, 0, 0)),
        ((1001, 300), (400, 200), CropGeometry(600, 300, 201, 0)),
        ((1920, 1080), (200, 120), CropGeometry(1800, 1080, 60, 0)),
    ],
)
def test_crop_geometry_examples(original, target, expected):
    assert compute_crop_geometry(*original, *target) == expected


@pytest.mark.parametrize("target", [(400, 200), (200, 120), (100, 300), (64, 64)])
@pytest.mark.parametrize("original", [(1, 1), (3, 1000), (1000, 3), (1023, 767), (401, 199), (5000, 20)])
def test_crop_geometry_contained_and_ratio_preserved(original, target):
    ow, oh = original
    tw, th = target
    g = compute_crop_geometry(ow, oh, tw, th)

    assert g.x >= 0 and g.y >= 0
    assert g.x + g.width <= ow
    assert g.y + g.height <= oh
    # one side always spans the full image
    assert g.width == ow or g.height == oh
    # same aspect ratio up to integer rounding
    assert abs(g.width * th - g.height * tw) <= max(tw, th)


@pytest.mark.parametrize("dims", [(0, 100, 400, 200), (100, 100, 400, 0), (-5, 10, 4, 2)])
def test_crop_geometry_rejects_empty_dimensions(dims):
    with pytest.raises(ValueError):
        compute_crop_geometry(*dims)


# --------------------------------------------------------------------------- #
#                           Selection & file names                            #
# --------------------------------------------------------------------------- #


def _candidate(url: str, source: ImageSource = ImageSource.IMG_SRC) -> CandidateImage:
    return CandidateImage(url=url, alt="", title="", selector="img", source=source, page_title="")


def test_select_representative_image():
    images = [_candidate("https://a/1.png"), _candidate("https://a/2.png")]
    assert select_representative_image(images) is images[0]
    assert select_representative_image([]) is None


@pytest.mark.parametrize(
    "title,url,expected",
    [
        ("Hello World | Blog", "https://www.example.com/p", "example-com_hello-world-blog_123.jpg"),
        (None, "https://example.com", "example-com_untitled_123.jpg"),
        ("   ", "https://example.com", "example-com_untitled_123.jpg"),
        ("Title", "not a url", "unknown_title_123.jpg"),
        ("Title", "http://[::1", "cropped_image_123.jpg"),
        ("Title", None, "cropped_image_123.jpg"),
        ("Title", "", "cropped_image_123.jpg"),
        ("Title", "   ", "cropped_image_123.jpg"),
    ],
)
def test_generate_image_filename(title, url, expected):
    assert generate_image_filename(title, url, timestamp_ms=123) == expected


def test_generate_image_filename_uses_current_time():
    name = generate_image_filename("t", "https://example.com")
    stamp = name.removeprefix("example-com_t_").removesuffix(".jpg")
    assert stamp.isdigit() and len(stamp) >= 13


# --------------------------------------------------------------------------- #
#                              Pillow crop path                               #
# --------------------------------------------------------------------------- #


def test_read_image_size():
    assert read_image_size(make_image_bytes(321, 123)) == (321, 123)
    with pytest.raises(ImageDecodeError):
        read_image_size(b"not an image")


@pytest.mark.parametrize("mode", ["RGB", "RGBA"])
def test_crop_and_save_writes_exact_jpeg(tmp_path, mode):
    data = make_image_bytes(300, 600, mode=mode)
    out = tmp_path / "thumb.jpg"

    dims = crop_and_save(data, compute_crop_geometry(300, 600, 400, 200), 400, 200, 85, out)

    assert (dims.width, dims.height, dims.format) == (400, 200, "jpeg")
    with Image.open(out) as img:
        assert img.size == (400, 200)
        assert img.format == "JPEG"


def test_crop_and_save_bad_bytes(tmp_path):
    with pytest.raises(ImageDecodeError):
        crop_and_save(b"garbage", CropGeometry(1, 1, 0, 0), 10, 10, 85, tmp_path / "x.jpg")


def test_crop_and_save_unwritable_target(tmp_path):
    data = make_image_bytes(40, 20)
    with pytest.raises(FileWriteError):
        crop_and_save(data, CropGeometry(40, 20, 0, 0), 40, 20, 85, tmp_path / "nope" / "x.jpg")


# --------------------------------------------------------------------------- #
#                         Full page processing                                #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_process_page_prefers_banner(digest_config, site_server):
    async with Fetcher(digest_config) as fetcher:
        artifact = await ImageCropper(fetcher, digest_config.image).process_page(f"{site_server}/banner")

    assert artifact.original_url == f"{site_server}/static/banner.png"
    assert artifact.source_type == "background-image"
    assert artifact.selector == ".breadcrumb-banner"
    assert artifact.filename.startswith("127-0-0-1_banner-page_")
    assert artifact.cropped_path.parent == digest_config.image.output_dir
    with Image.open(artifact.cropped_path) as img:
        assert img.size == (400, 200)


@pytest.mark.asyncio()
async def test_process_page_img_fallback(digest_config, site_server):
    small = digest_config.image.model_copy(update={"width": 200, "height": 120, "quality": 60})
    async with Fetcher(digest_config) as fetcher:
        artifact = await ImageCropper(fetcher, small).process_page(f"{site_server}/imgs")

    assert artifact.original_url == f"{site_server}/photo.png"
    assert artifact.source_type == "src"
    assert artifact.source_alt == "A photo"
    assert artifact.source_title == "Photo title"
    assert (artifact.dimensions.width, artifact.dimensions.height) == (200, 120)
    with Image.open(artifact.cropped_path) as img:
        assert img.size == (200, 120)


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "path,error",
    [
        ("/noimg", NoImagesFoundError),
        ("/missing", HttpStatusError),
        ("/broken", ImageDecodeError),
        ("/gone", ImageDownloadError),
    ],
)
async def test_process_page_failures(digest_config, site_server, path, error):
    async with Fetcher(digest_config) as fetcher:
        with pytest.raises(error):
            await ImageCropper(fetcher, digest_config.image).process_page(f"{site_server}{path}")
    assert not any(digest_config.image.output_dir.glob("*.jpg"))
