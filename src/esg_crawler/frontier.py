"""Request frontier: admission budget, host scope and the pending queue."""

from __future__ import annotations

import asyncio
import logging
import threading
from urllib.parse import urldefrag, urlsplit

from esg_crawler.config import Settings
from esg_crawler.errors import MalformedUrlError
from esg_crawler.models import CrawlRequest

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def url_host(url: str) -> str:
    """
    Return the host of an absolute URL as ``hostname[:port]``.

    The hostname is lowercased and the scheme's default port is omitted.
    Raises MalformedUrlError when no host can be parsed.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise MalformedUrlError(f"Cannot parse host of {url!r}: {exc}") from exc
    if not parts.scheme or not hostname:
        raise MalformedUrlError(f"No host in {url!r}")
    if port is None or _DEFAULT_PORTS.get(parts.scheme.lower()) == port:
        return hostname
    return f"{hostname}:{port}"


def scope_host(request: CrawlRequest) -> str | None:
    """The host links found on ``request`` must match. None if unparseable."""
    if request.start_host:
        return request.start_host
    try:
        return url_host(request.url)
    except MalformedUrlError:
        return None


def in_scope(candidate_url: str, origin: CrawlRequest, admit_malformed: bool = True) -> bool:
    """Host-scope check for a candidate discovered on ``origin``'s page."""
    start_host = scope_host(origin)
    try:
        candidate_host = url_host(candidate_url)
    except MalformedUrlError:
        return admit_malformed
    if start_host is None:
        return admit_malformed
    return candidate_host == start_host


def _unique_key(url: str) -> str:
    try:
        return urldefrag(url)[0]
    except ValueError:
        return url


class Frontier:
    """
    Tracks every URL ever admitted and the requests waiting to be fetched.

    Admission is guarded by a lock so concurrent workers never admit past
    ``max_requests_per_crawl``. Requests already in flight when the cap is
    hit still run to completion.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._lock = threading.Lock()
        self._seen: set[str] = set()
        self._admitted = 0
        self._queue: asyncio.Queue[CrawlRequest] = asyncio.Queue()

    @property
    def admitted(self) -> int:
        return self._admitted

    @property
    def limit_reached(self) -> bool:
        return self._admitted >= self._settings.max_requests_per_crawl

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _try_admit(self, request: CrawlRequest) -> bool:
        key = _unique_key(request.url)
        with self._lock:
            if self._admitted >= self._settings.max_requests_per_crawl:
                return False
            if key in self._seen:
                return False
            self._seen.add(key)
            self._admitted += 1
        self._queue.put_nowait(request)
        return True

    def add_seed(self, url: str) -> bool:
        """Admit a seed URL; its own host becomes the scope for its subtree."""
        try:
            start_host = url_host(url)
        except MalformedUrlError:
            logger.warning("Seed URL has no parseable host: %s", url)
            start_host = None
        admitted = self._try_admit(CrawlRequest(url=url, start_host=start_host))
        if not admitted:
            logger.debug("Seed not admitted (duplicate or limit reached): %s", url)
        return admitted

    def enqueue(self, candidate_url: str, origin: CrawlRequest) -> CrawlRequest | None:
        """
        Enqueue a link found on ``origin``'s page, returning the new request.

        Returns None once the admission cap is reached, when the URL was
        already admitted, or (with ``follow_internal_only``) when its host
        differs from the origin's start host. The new request inherits that
        start host so scope holds along the whole crawl tree.
        """
        if self.limit_reached:
            return None
        if self._settings.follow_internal_only and not in_scope(
            candidate_url, origin, self._settings.admit_malformed_urls
        ):
            return None
        request = CrawlRequest(url=candidate_url, start_host=scope_host(origin))
        if not self._try_admit(request):
            return None
        return request

    def admit(self, candidate_url: str, origin: CrawlRequest) -> bool:
        """Decide whether a discovered link is enqueued. See ``enqueue``."""
        return self.enqueue(candidate_url, origin) is not None

    async def next_request(self) -> CrawlRequest:
        return await self._queue.get()

    def mark_visited(self, request: CrawlRequest) -> None:
        request.visited = True
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()
