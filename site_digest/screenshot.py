"""Page screenshots through a headless Chromium driven by Playwright.

The rest of the package only relies on the :class:`Renderer` protocol,
so tests and callers can plug in any object with an async ``render``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from playwright.async_api import Browser, Error as PlaywrightError, Playwright, async_playwright

from site_digest.config import DigestConfig, ScreenshotConfig
from site_digest.errors import RenderError
from site_digest.logger import logger
from site_digest.utils import clean_name

__all__ = ("Renderer", "PlaywrightRenderer", "UnavailableRenderer", "screenshot_path", "capture_screenshot")


class Renderer(Protocol):
    async def render(self, url: str, output_path: Path, options: ScreenshotConfig) -> None: ...


class PlaywrightRenderer:
    """One browser per batch, one fresh context per screenshot."""

    def __init__(self, timeout: float, user_agent: str) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> PlaywrightRenderer:
        try:
            self._playwright = await async_playwright().start()
        except PlaywrightError as exc:
            raise RenderError(f"Failed to start Playwright: {exc.message}") from exc
        try:
            self._browser = await self._playwright.chromium.launch(headless=True)
        except PlaywrightError as exc:
            # __aexit__ is not called when __aenter__ fails
            await self._playwright.stop()
            self._playwright = None
            raise RenderError(f"Failed to launch Chromium: {exc.message}") from exc
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()

    async def render(self, url: str, output_path: Path, options: ScreenshotConfig) -> None:
        if self._browser is None:
            raise RuntimeError("Browser not started")
        context = await self._browser.new_context(
            viewport={"width": options.viewport_width, "height": options.viewport_height},
            user_agent=self.user_agent,
        )
        try:
            page = await context.new_page()
            page.set_default_navigation_timeout(self.timeout * 1000)
            await page.goto(url, wait_until="load")
            if options.render_delay_ms:
                await page.wait_for_timeout(options.render_delay_ms)
            await page.screenshot(
                path=str(output_path),
                type=options.image_type,
                full_page=options.full_page,
            )
        except PlaywrightError as exc:
            raise RenderError(f"Error taking screenshot for {url}: {exc.message}") from exc
        finally:
            await context.close()


class UnavailableRenderer:
    """Stands in when the browser could not be started: every render fails with that reason."""

    def __init__(self, error: RenderError) -> None:
        self.error = error

    async def render(self, url: str, output_path: Path, options: ScreenshotConfig) -> None:
        raise RenderError(f"Error taking screenshot for {url}: {self.error}") from self.error


def screenshot_path(url: str, config: DigestConfig) -> Path:
    return Path(config.output_dir) / f"{clean_name(url)}.{config.screenshot.image_type}"


async def capture_screenshot(url: str, renderer: Renderer, config: DigestConfig) -> str:
    """Render *url* into the output directory and return the success message."""
    rule = config.format_rule_for(url)
    if rule is not None and rule.skip_screenshot:
        logger.info("Skipped screenshot for %s", url)
        return f"Skipped screenshot for {url}"

    name = clean_name(url)
    try:
        await renderer.render(url, screenshot_path(url, config), config.screenshot)
    except RenderError:
        raise
    except OSError as exc:
        raise RenderError(f"Error taking screenshot for {url}: {exc}") from exc
    return f"{name} screenshot OK!"
