"""Crawl loop: a pool of async workers, each processing one request end-to-end.

Per request:
  fetch -> discover links -> extract metadata / detect PDFs -> classify -> emit

Failures stay local to the request. A fetch that exhausts its retries or a
page whose processing raises is logged and skipped; the crawl carries on.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Protocol

from esg_crawler.classifier import process_page
from esg_crawler.config import Settings
from esg_crawler.dataset import Dataset
from esg_crawler.errors import ExtractionError, FetchError, SinkError
from esg_crawler.fetcher import Fetcher
from esg_crawler.frontier import Frontier
from esg_crawler.models import CrawlRequest, CrawlResult, FetchedPage, LogEvent

logger = logging.getLogger(__name__)

LINE = "=" * 60

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> FetchedPage: ...


def _out(msg: str = "") -> None:
    """Print a status message to stderr so it doesn't mix with JSON output."""
    print(msg, file=sys.stderr, flush=True)


def _elapsed(t: float) -> str:
    """Format elapsed seconds as human-readable string."""
    secs = time.time() - t
    if secs < 60:
        return f"{secs:.1f}s"
    return f"{secs / 60:.1f}m"


def _log_event(event: LogEvent) -> None:
    fields = " ".join(f"{k}={v}" for k, v in event.fields.items())
    logger.log(_LEVELS.get(event.level, logging.INFO), "%s %s", event.message, fields)


class _Crawl:
    """State shared by the workers of one crawl run."""

    def __init__(
        self,
        settings: Settings,
        frontier: Frontier,
        fetcher: PageFetcher,
        dataset: Dataset,
    ) -> None:
        self.settings = settings
        self.frontier = frontier
        self.fetcher = fetcher
        self.dataset = dataset
        self.result = CrawlResult(
            start_urls=list(settings.start_urls),
            dataset_dir=str(dataset.path),
        )

    async def worker(self, worker_id: int) -> None:
        while True:
            request = await self.frontier.next_request()
            try:
                await self.handle(request)
            except Exception:
                # Never let one request take the worker down.
                logger.exception("Worker %d failed on %s", worker_id, request.url)
            finally:
                self.frontier.mark_visited(request)

    async def handle(self, request: CrawlRequest) -> None:
        try:
            page = await self.fetcher.fetch(request.url)
        except FetchError as exc:
            self.result.pages_failed += 1
            logger.warning("Request failed, skipping %s: %s", request.url, exc)
            return

        self.result.pages_fetched += 1
        logger.info("Processing %s", page.url)

        try:
            outcome = process_page(page, request, self.frontier, self.settings)
        except Exception as exc:
            error = ExtractionError(page.url, str(exc))
            self.result.extraction_errors += 1
            logger.warning("Extraction error url=%s message=%s", error.url, error.message)
            return

        for record in outcome.records:
            try:
                self.dataset.push_data(record)
            except SinkError as exc:
                self.result.sink_errors += 1
                logger.error("Failed to store record for %s: %s", record.url, exc)
                continue
            self.result.records_emitted += 1

        for event in outcome.events:
            _log_event(event)


async def crawl_async(
    settings: Settings,
    *,
    fetcher: PageFetcher | None = None,
    dataset: Dataset | None = None,
) -> CrawlResult:
    """
    Crawl from ``settings.start_urls`` and write report candidates to the dataset.

    Args:
        fetcher: Page fetcher to use. Defaults to an httpx-based Fetcher.
        dataset: Output sink. Defaults to a Dataset at ``settings.dataset_dir``.
    """
    if dataset is None:
        dataset = Dataset(Path(settings.dataset_dir))
    frontier = Frontier(settings)
    for url in settings.start_urls:
        frontier.add_seed(url)

    crawl_start = time.time()
    _out(f"\n{LINE}")
    _out("  ESG Report Crawler")
    _out(LINE)
    _out(f"  Seeds:       {len(settings.start_urls)}")
    _out(f"  Max requests: {settings.max_requests_per_crawl}")
    _out(f"  PDF links:   {'on' if settings.detect_pdf_links else 'off'}")
    _out(f"  Scope:       {'internal only' if settings.follow_internal_only else 'any host'}")
    _out(LINE)

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = Fetcher(settings)

    crawl = _Crawl(settings, frontier, fetcher, dataset)
    workers = [
        asyncio.create_task(crawl.worker(i))
        for i in range(settings.max_concurrency)
    ]
    try:
        await frontier.join()
    finally:
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        if owns_fetcher:
            await fetcher.aclose()

    result = crawl.result
    result.requests_admitted = frontier.admitted
    if frontier.limit_reached:
        logger.info("Reached the limit of %d requests", settings.max_requests_per_crawl)

    _out()
    _out(LINE)
    _out("  CRAWL COMPLETE")
    _out(LINE)
    _out(f"  Pages fetched:     {result.pages_fetched}")
    _out(f"  Pages failed:      {result.pages_failed}")
    _out(f"  Extraction errors: {result.extraction_errors}")
    _out(f"  Records saved:     {result.records_emitted}")
    _out(f"  Total time:        {_elapsed(crawl_start)}")
    _out(LINE)
    _out()

    logger.info(
        "Crawl complete. Admitted: %d, Fetched: %d, Records: %d",
        result.requests_admitted, result.pages_fetched, result.records_emitted,
    )
    return result


def crawl(
    settings: Settings | None = None,
    *,
    fetcher: PageFetcher | None = None,
    dataset: Dataset | None = None,
) -> CrawlResult:
    """Synchronous wrapper for crawl_async. Settings default to the environment."""
    if settings is None:
        settings = Settings.from_env()
    return asyncio.run(crawl_async(settings, fetcher=fetcher, dataset=dataset))
