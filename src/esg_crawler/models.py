"""Data models for the crawl pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field


class CrawlRequest(BaseModel):
    """A URL admitted into the frontier."""

    url: str = Field(description="Absolute URL to fetch")
    start_host: str | None = Field(
        default=None,
        description="Host of the seed URL this request descends from",
    )
    visited: bool = Field(default=False)


@dataclass(frozen=True)
class FetchedPage:
    """A fetched and parsed page. Never mutated by the extraction stages."""

    url: str
    soup: BeautifulSoup
    text: str

    @classmethod
    def from_html(cls, url: str, html: str) -> FetchedPage:
        soup = BeautifulSoup(html, "html.parser")
        root = soup.body or soup
        return cls(url=url, soup=soup, text=root.get_text())


class ExtractedMetadata(BaseModel):
    """Fields derived from a page by the heuristic cascades."""

    company: str = ""
    title: str = ""
    date: str = Field(default="", description="Free-form, not parsed")
    exec_summary: str = Field(default="", max_length=4000)
    tags: list[str] = Field(default_factory=list)


class OutputRecord(BaseModel):
    """One row of the report-candidate dataset."""

    model_config = ConfigDict(frozen=True)

    company: str = ""
    title: str = ""
    date: str = ""
    pdf_url: str = Field(default="", description="Empty string when the page itself is the candidate")
    exec_summary: str = ""
    tags: list[str] = Field(default_factory=list)
    url: str = Field(description="Resolved URL of the page the record came from")


class LogEvent(BaseModel):
    """A diagnostic produced by a pipeline stage, logged by the crawl loop."""

    level: str = "info"
    message: str
    fields: dict[str, Any] = Field(default_factory=dict)


class PageOutcome(BaseModel):
    """Everything processing one page produced."""

    records: list[OutputRecord] = Field(default_factory=list)
    new_requests: list[CrawlRequest] = Field(default_factory=list)
    events: list[LogEvent] = Field(default_factory=list)


class CrawlResult(BaseModel):
    """Final summary of a crawl run."""

    start_urls: list[str] = Field(default_factory=list)
    requests_admitted: int = Field(default=0)
    pages_fetched: int = Field(default=0)
    pages_failed: int = Field(default=0)
    extraction_errors: int = Field(default=0)
    records_emitted: int = Field(default=0)
    sink_errors: int = Field(default=0)
    dataset_dir: str = ""
