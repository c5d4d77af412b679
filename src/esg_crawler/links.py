"""Link discovery: turn a page's references into admitted crawl requests."""

from __future__ import annotations

from urllib.parse import urldefrag, urljoin, urlsplit

from esg_crawler.frontier import Frontier
from esg_crawler.models import CrawlRequest, FetchedPage

# (tag, attribute) pairs that reference another page
LINK_ATTRIBUTES: list[tuple[str, str]] = [
    ("a", "href"),
    ("area", "href"),
    ("iframe", "src"),
    ("frame", "src"),
]

_CRAWLABLE_SCHEMES = {"http", "https"}


def page_links(page: FetchedPage) -> list[str]:
    """Every crawlable absolute URL referenced by the page, in document order."""
    names = [name for name, _ in LINK_ATTRIBUTES]
    attributes = dict(LINK_ATTRIBUTES)
    urls: dict[str, None] = {}
    for tag in page.soup.find_all(names):
        raw = tag.get(attributes[tag.name])
        if not raw or not raw.strip():
            continue
        raw = raw.strip()
        try:
            absolute = urldefrag(urljoin(page.url, raw))[0]
            scheme = urlsplit(absolute).scheme.lower()
        except ValueError:
            # Unparseable; left to the frontier's malformed-URL policy.
            absolute = raw
            scheme = raw.split(":", 1)[0].lower()
        if scheme in _CRAWLABLE_SCHEMES:
            urls.setdefault(absolute, None)
    return list(urls)


def discover_links(
    page: FetchedPage, origin: CrawlRequest, frontier: Frontier
) -> list[CrawlRequest]:
    """Submit every link on ``page`` to the frontier; return the admitted requests."""
    admitted = []
    for url in page_links(page):
        request = frontier.enqueue(url, origin)
        if request is not None:
            admitted.append(request)
    return admitted
