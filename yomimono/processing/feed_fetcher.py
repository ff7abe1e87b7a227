"""
RSS Feed Fetcher
================

Retrieves raw feed documents over HTTP with the reader's user agent,
feed-specific Accept header and a Cache-Control hint. Any non-2xx
response, transport failure or timeout becomes a ``FeedFetchError``.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp
import certifi

from ..config.settings import BatchSettings, get_settings
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import FeedFetchError, ErrorCode


class FeedFetcher:
    """HTTP client for RSS and Atom documents."""

    def __init__(self, settings: Optional[BatchSettings] = None):
        """Initialize feed fetcher.

        Args:
            settings: Batch settings (default from config)
        """
        self.settings = settings or get_settings().batch
        self.timeout = self.settings.request_timeout
        self.logger = get_logger_for_component("fetcher")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @property
    def headers(self) -> dict:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": self.settings.accept,
            "Cache-Control": f"max-age={self.settings.cache_ttl_seconds}",
        }

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.settings.chunk_size * 2,
            limit_per_host=5,
        )
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=self.headers
        ) as session:
            yield session

    async def fetch_feed(
        self, url: str, session: Optional[aiohttp.ClientSession] = None
    ) -> str:
        """Fetch the raw text of a feed.

        Args:
            url: Feed URL
            session: Shared session; a private one is opened when omitted

        Returns:
            Response body as text

        Raises:
            FeedFetchError: On non-2xx status, network failure or timeout
        """
        if session is None:
            async with self.get_session() as own_session:
                return await self._fetch(url, own_session)
        return await self._fetch(url, session)

    async def _fetch(self, url: str, session: aiohttp.ClientSession) -> str:
        try:
            with PerformanceLogger(self.logger, f"fetch {url}", feed_url=url) as perf:
                async with session.get(url, headers=self.headers) as response:
                    if not 200 <= response.status < 300:
                        raise FeedFetchError(
                            f"Failed to fetch RSS: {response.status} {response.reason or ''}".rstrip(),
                            status=response.status,
                            feed_url=url,
                            error_code=ErrorCode.FEED_HTTP_ERROR,
                        )
                    body = await response.text()

            self.logger.debug(
                f"Fetched {len(body)} characters from {url} in {perf.duration:.2f}s",
                extra={"feed_url": url, "content_length": len(body)},
            )
            return body

        except FeedFetchError:
            raise
        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Failed to fetch RSS: request timeout after {self.timeout}s",
                feed_url=url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Failed to fetch RSS: {e}",
                feed_url=url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e
