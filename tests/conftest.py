# File: tests/conftest.py
from __future__ import annotations

import io
from collections.abc import AsyncIterator
from pathlib import Path
from typing import List, Sequence

import pytest
import pytest_asyncio
from aiohttp import web
from PIL import Image

from site_digest.config import DigestConfig, ScreenshotConfig
from site_digest.errors import RenderError
from site_digest.logger import configure


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """Solid-colour image of the given size, encoded in memory."""
    color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


async def serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on a free local port, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port = runner.addresses[0][1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


def html(text: str):
    async def handler(_):
        return web.Response(text=text, content_type="text/html")

    return handler


def binary(data: bytes, content_type: str = "image/png"):
    async def handler(_):
        return web.Response(body=data, content_type=content_type)

    return handler


PAGE_HTML = (
    "<html><head><title>Test Page Title</title>"
    '<meta name="description" content="Test page description">'
    '<meta property="og:description" content="OG description">'
    "</head><body><h1>Test Content</h1></body></html>"
)

PARTNER_HTML = (
    "<html><head><title>Buscandriu Test | Extra</title>"
    '<meta name="description" content="Buscandriu test description">'
    "</head><body></body></html>"
)


class FakeRenderer:
    """Stands in for Playwright: records calls and writes a dummy PNG."""

    def __init__(self, fail_for: Sequence[str] = ()) -> None:
        self.fail_for = tuple(fail_for)
        self.calls: List[str] = []

    async def render(self, url: str, output_path: Path, options: ScreenshotConfig) -> None:
        self.calls.append(url)
        if any(marker in url for marker in self.fail_for):
            raise RenderError(f"Error taking screenshot for {url}: Screenshot failed")
        output_path.write_bytes(b"mock-png-data")


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI tests point the logger at CliRunner streams; restore it afterwards."""
    yield
    configure()


@pytest.fixture()
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture()
def digest_config(tmp_path: Path) -> DigestConfig:
    """
    Return a config writing into temporary directories.
    """
    out = tmp_path / "out"
    out.mkdir()
    return DigestConfig(
        output_dir=out,
        timeout=2.0,
        user_agent="TestAgent/1.0",
        image={"output_dir": tmp_path / "img"},
    )


@pytest_asyncio.fixture
async def site_server() -> AsyncIterator[str]:
    app = web.Application()

    banner_page = (
        "<html><head><title>Banner Page</title></head><body>"
        "<div class=\"breadcrumb-banner\" style=\"background-image: url('/static/banner.png')\"></div>"
        '<img src="/photo.png">'
        "</body></html>"
    )
    img_page = (
        "<html><head><title>Gallery | Site</title></head><body>"
        '<img alt="no source">'
        '<img src="photo.png" alt="A photo" title="Photo title">'
        "</body></html>"
    )

    async def handle_missing(_):
        return web.Response(status=404, text="not found")

    app.router.add_get("/", html(PAGE_HTML))
    app.router.add_get("/buscandriu", html(PARTNER_HTML))
    app.router.add_get("/missing", handle_missing)
    app.router.add_get("/banner", html(banner_page))
    app.router.add_get("/imgs", html(img_page))
    app.router.add_get("/noimg", html("<html><head><title>Plain</title></head><body>x</body></html>"))
    app.router.add_get("/broken", html('<html><body><img src="/broken.png"></body></html>'))
    app.router.add_get("/gone", html('<html><body><img src="/nothing.png"></body></html>'))
    app.router.add_get("/static/banner.png", binary(make_image_bytes(800, 200)))
    app.router.add_get("/photo.png", binary(make_image_bytes(300, 600, mode="RGBA")))
    app.router.add_get("/broken.png", binary(b"definitely not an image"))

    async for url in serve_app(app):
        yield url
