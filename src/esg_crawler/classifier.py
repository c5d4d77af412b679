"""Decide which output records a page produces.

The per-page pipeline lives here as well: discover links, extract metadata,
detect report links and classify. Every stage is a plain function of the
page, its originating request and the settings; diagnostics come back as
LogEvents for the crawl loop to log.
"""

from __future__ import annotations

import re

from esg_crawler.config import Settings
from esg_crawler.detector import detect_pdf_links
from esg_crawler.extractor import extract_metadata
from esg_crawler.frontier import Frontier
from esg_crawler.links import discover_links
from esg_crawler.models import (
    CrawlRequest,
    ExtractedMetadata,
    FetchedPage,
    LogEvent,
    OutputRecord,
    PageOutcome,
)

MAX_PDF_RECORDS = 5
REPORT_SCAN_CHARS = 2000

REPORT_TEXT_RE = re.compile(
    r"sustainability|esg|csr|environmental|social|governance"
    r"|sustainability report|esg report",
    re.IGNORECASE,
)


def is_likely_report(metadata: ExtractedMetadata, page: FetchedPage) -> bool:
    """A page with no PDF links still counts if it has a summary or ESG wording up top."""
    if metadata.exec_summary:
        return True
    return bool(REPORT_TEXT_RE.search(page.text[:REPORT_SCAN_CHARS]))


def _record(metadata: ExtractedMetadata, pdf_url: str, page: FetchedPage) -> OutputRecord:
    return OutputRecord(
        company=metadata.company,
        title=metadata.title,
        date=metadata.date,
        pdf_url=pdf_url,
        exec_summary=metadata.exec_summary,
        tags=list(metadata.tags),
        url=page.url,
    )


def classify(
    metadata: ExtractedMetadata, pdf_candidates: list[str], page: FetchedPage
) -> list[OutputRecord]:
    """
    One record per PDF candidate (first 5 distinct, in discovery order).

    Without PDF candidates the page itself becomes a single record with an
    empty ``pdf_url`` when it looks like a report, and nothing otherwise.
    """
    if pdf_candidates:
        distinct = list(dict.fromkeys(pdf_candidates))[:MAX_PDF_RECORDS]
        return [_record(metadata, pdf_url, page) for pdf_url in distinct]
    if is_likely_report(metadata, page):
        return [_record(metadata, "", page)]
    return []


def process_page(
    page: FetchedPage,
    origin: CrawlRequest,
    frontier: Frontier,
    settings: Settings,
) -> PageOutcome:
    """Run discovery, extraction, detection and classification for one fetched page."""
    new_requests = discover_links(page, origin, frontier)
    events = [
        LogEvent(
            level="debug",
            message="Enqueued links",
            fields={"url": page.url, "count": len(new_requests)},
        )
    ]

    metadata = extract_metadata(page)
    pdf_candidates = detect_pdf_links(page) if settings.detect_pdf_links else []
    records = classify(metadata, pdf_candidates, page)

    if pdf_candidates:
        events.extend(
            LogEvent(message="Saved PDF candidate", fields={"pdf_url": r.pdf_url})
            for r in records
        )
    elif records:
        events.append(LogEvent(message="Saved HTML report candidate", fields={"url": page.url}))
    else:
        events.append(
            LogEvent(
                level="debug",
                message="No report-like content detected on page",
                fields={"url": page.url},
            )
        )
    return PageOutcome(records=records, new_requests=new_requests, events=events)
