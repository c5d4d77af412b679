"""Fetch and parse HTML pages with retry logic and proxy rotation."""

from __future__ import annotations

import itertools
import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from esg_crawler.config import Settings
from esg_crawler.errors import FetchError
from esg_crawler.models import FetchedPage

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = (
    "text/html",
    "application/xhtml+xml",
    "text/xml",
    "application/xml",
)


def _is_retryable(exc: BaseException) -> bool:
    """Transport failures, throttling and server errors are worth another try."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _is_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    if not content_type:
        return True
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime in HTML_CONTENT_TYPES


class Fetcher:
    """
    Async page fetcher. Requests rotate round-robin over one client per
    configured proxy (or a single direct client when none are set).
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        proxies: list[str | None] = list(settings.proxy_urls) or [None]
        self._clients = [
            httpx.AsyncClient(
                proxy=proxy,
                transport=transport,
                headers=headers,
                timeout=settings.request_timeout,
                follow_redirects=True,
            )
            for proxy in proxies
        ]
        self._rotation = itertools.cycle(self._clients)

    async def __aenter__(self) -> Fetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()

    async def _get(self, client: httpx.AsyncClient, url: str) -> tuple[str, str]:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            if not _is_html(response):
                raise FetchError(
                    f"Unsupported content type {response.headers.get('content-type')!r} for {url}"
                )
            await response.aread()
            return str(response.url), response.text

    async def fetch(self, url: str) -> FetchedPage:
        """
        Fetch ``url`` and parse it.

        Retries retryable failures up to ``max_request_retries`` times with
        exponential backoff, then raises FetchError.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_request_retries + 1),
                wait=wait_exponential(multiplier=self._settings.retry_backoff, max=30),
                retry=retry_if_exception(_is_retryable),
                reraise=True,
            ):
                with attempt:
                    client = next(self._rotation)
                    resolved_url, html = await self._get(client, url)
        except FetchError as exc:
            logger.error("Fetch failed for %s: %s", url, exc)
            raise
        except Exception as exc:
            logger.error("Fetch failed for %s: %s", url, exc)
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc

        logger.info("Fetched %d bytes from %s", len(html), resolved_url)
        return FetchedPage.from_html(resolved_url, html)
