"""Shared fixtures for the crawler tests."""

from __future__ import annotations

import pytest

from esg_crawler.config import Settings
from esg_crawler.models import CrawlRequest, FetchedPage


@pytest.fixture()
def settings(tmp_path) -> Settings:
    """Settings with no backoff and a throwaway dataset directory."""
    return Settings(
        start_urls=("https://example.com/",),
        max_requests_per_crawl=50,
        max_concurrency=2,
        retry_backoff=0.0,
        dataset_dir=str(tmp_path / "dataset"),
    )


@pytest.fixture()
def make_page():
    def _make(html: str, url: str = "https://example.com/sustainability") -> FetchedPage:
        return FetchedPage.from_html(url, html)

    return _make


@pytest.fixture()
def origin() -> CrawlRequest:
    return CrawlRequest(url="https://example.com/", start_host="example.com")


SAMPLE_REPORT_HTML = """\
<!DOCTYPE html>
<html>
<head>
    <title>Sustainability Report 2023 | Acme Corp</title>
    <meta property="og:site_name" content="Acme Corp">
    <meta property="og:title" content="Acme Sustainability Report 2023">
    <meta name="article:published_time" content="2024-03-01T09:00:00Z">
    <meta name="keywords" content="ESG, Climate, Sustainability">
</head>
<body>
    <header><h1>Acme Corp</h1></header>
    <main>
        <h1>Our Sustainability Report</h1>
        <h2>Executive Summary</h2>
        <p>We cut scope 1 emissions by 12%.</p>
        <p>Our ESG programme now covers all sites.</p>
        <ul><li><a href="/files/acme-sr-2023.pdf">Download the report</a></li></ul>
        <p><a href="/about">About us</a> <a href="https://twitter.com/acme">Twitter</a></p>
    </main>
</body>
</html>
"""

PLAIN_HTML = """\
<html>
<head><title>Careers</title></head>
<body>
    <h1>Join our team</h1>
    <p>We are hiring engineers in Berlin.</p>
    <a href="/jobs">Open roles</a>
</body>
</html>
"""
