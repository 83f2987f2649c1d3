# site_digest/crawler/fetcher.py
"""
Fetcher module: HTTP requests with a fixed per-request timeout.

No retries and no rate limiting: a failed request is final for that URL
in the current run.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_digest.config import DigestConfig
from site_digest.crawler.models import PageData
from site_digest.errors import HttpStatusError, NetworkError
from site_digest.logger import logger


class Fetcher:
    """Thin wrapper over a shared :class:`aiohttp.ClientSession`.

    Use as an async context manager::

        async with Fetcher(config) as fetcher:
            page = await fetcher.fetch_page("https://example.com")
    """

    def __init__(self, config: DigestConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch_page(self, url: str) -> PageData:
        """
        GET *url* and return its HTML.

        Raises HttpStatusError on any non-200 answer and NetworkError on
        transport failures or timeout.
        """
        session = self._require_session()
        logger.info("Scraping page: %s", url)
        try:
            async with session.get(url, allow_redirects=True) as resp:
                if resp.status != 200:
                    raise HttpStatusError(url, resp.status)
                text = await resp.text(errors="replace")
                return PageData(str(resp.url), resp.status, text)
        except asyncio.TimeoutError as exc:
            raise NetworkError(url, f"timed out after {self.config.timeout}s") from exc
        except ClientError as exc:
            raise NetworkError(url, str(exc) or exc.__class__.__name__) from exc

    async def fetch_bytes(self, url: str) -> bytes:
        """GET *url* and return the raw body. Same error contract as :meth:`fetch_page`."""
        session = self._require_session()
        try:
            async with session.get(url, allow_redirects=True) as resp:
                if resp.status != 200:
                    raise HttpStatusError(url, resp.status)
                return await resp.read()
        except asyncio.TimeoutError as exc:
            raise NetworkError(url, f"timed out after {self.config.timeout}s") from exc
        except ClientError as exc:
            raise NetworkError(url, str(exc) or exc.__class__.__name__) from exc

    def _require_session(self) -> ClientSession:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        return self.session
