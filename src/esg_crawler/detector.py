"""Detect links to PDF files and report-like documents on a page."""

from __future__ import annotations

import re
from urllib.parse import urljoin

from esg_crawler.models import FetchedPage

# Matched against the raw href, before resolution
REPORT_HREF_RE = re.compile(
    r"esg|sustainability|sustainability-report|annual-report|csr", re.IGNORECASE
)


def is_report_link(href: str, absolute_url: str) -> bool:
    return absolute_url.lower().endswith(".pdf") or bool(REPORT_HREF_RE.search(href))


def detect_pdf_links(page: FetchedPage) -> list[str]:
    """Absolute URLs of PDF/report links on the page, deduplicated, in discovery order."""
    found: dict[str, None] = {}
    for anchor in page.soup.find_all("a", href=True):
        href = anchor["href"]
        if not href:
            continue
        absolute = urljoin(page.url, href.strip())
        if is_report_link(href, absolute):
            found.setdefault(absolute, None)
    return list(found)
