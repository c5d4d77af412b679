"""Heuristic metadata extraction from a parsed page.

Each field is resolved by an ordered cascade of small extractor functions:
the first one to return a non-empty string wins. The cascades are plain
lists so they can be inspected and tested one step at a time.
"""

from __future__ import annotations

import re
from typing import Callable

from bs4 import Tag

from esg_crawler.models import ExtractedMetadata, FetchedPage

Extractor = Callable[[FetchedPage], str]

MAX_SUMMARY_CHARS = 4000
SUMMARY_SIBLINGS = 6
DATE_SCAN_CHARS = 1200

YEAR_RE = re.compile(r"\b(20\d{2}|19\d{2})\b")
SUMMARY_RE = re.compile(r"executive summary|\bsummary\b", re.IGNORECASE)
ESG_RE = re.compile(r"esg", re.IGNORECASE)
SUSTAINABILITY_RE = re.compile(r"sustainability", re.IGNORECASE)

# Regions searched for a fallback summary paragraph
CONTENT_PARAGRAPHS = "article p, .content p, .report p"

# Elements whose text is never page content
_NON_CONTENT = {"script", "style", "noscript", "template"}


def _meta(page: FetchedPage, selector: str) -> str:
    tag = page.soup.select_one(selector)
    if tag is None:
        return ""
    content = tag.get("content") or ""
    if isinstance(content, list):
        content = " ".join(content)
    return content.strip()


def _text(page: FetchedPage, selector: str) -> str:
    tag = page.soup.select_one(selector)
    return tag.get_text().strip() if tag is not None else ""


def meta_extractor(selector: str) -> Extractor:
    """Read the ``content`` attribute of the first meta tag matching ``selector``."""

    def extract(page: FetchedPage) -> str:
        return _meta(page, selector)

    extract.__name__ = f"meta[{selector}]"
    return extract


def text_extractor(selector: str) -> Extractor:
    """Read the stripped text of the first element matching ``selector``."""

    def extract(page: FetchedPage) -> str:
        return _text(page, selector)

    extract.__name__ = f"text[{selector}]"
    return extract


def document_title(page: FetchedPage) -> str:
    title = page.soup.find("title")
    return title.get_text().strip() if title is not None else ""


def time_datetime(page: FetchedPage) -> str:
    tag = page.soup.find("time")
    if tag is None:
        return ""
    return (tag.get("datetime") or "").strip()


def time_text(page: FetchedPage) -> str:
    return _text(page, "time")


def year_in_text(page: FetchedPage) -> str:
    match = YEAR_RE.search(page.text[:DATE_SCAN_CHARS])
    return match.group(0) if match else ""


COMPANY_EXTRACTORS: list[Extractor] = [
    meta_extractor('meta[property="og:site_name"]'),
    meta_extractor('meta[name="application-name"]'),
    meta_extractor('meta[name="author"]'),
    text_extractor("header h1, header h2"),
]

TITLE_EXTRACTORS: list[Extractor] = [
    meta_extractor('meta[property="og:title"]'),
    meta_extractor('meta[name="twitter:title"]'),
    text_extractor("h1"),
    document_title,
]

DATE_EXTRACTORS: list[Extractor] = [
    meta_extractor(
        'meta[name="article:published_time"], meta[property="article:published_time"]'
    ),
    time_datetime,
    time_text,
    year_in_text,
]


def first_non_empty(page: FetchedPage, extractors: list[Extractor]) -> str:
    """Run a cascade and return the first non-empty result, or ""."""
    for extractor in extractors:
        value = extractor(page)
        if value:
            return value
    return ""


def _is_content(tag: Tag) -> bool:
    return tag.name not in _NON_CONTENT and not any(
        parent.name in _NON_CONTENT for parent in tag.parents
    )


def find_summary_heading(page: FetchedPage) -> Tag | None:
    """
    First element (in document order) whose text mentions a summary.

    When an element and its descendants all match, the innermost one is
    taken, so ``<section><h2>Executive Summary</h2>...`` yields the ``h2``.
    Inline markup inside a heading (``<h2><span>Executive Summary</span></h2>``)
    is climbed back out of, up to the nearest ancestor that has content after it.
    """
    root = page.soup.body or page.soup
    for tag in root.find_all(True):
        if not _is_content(tag) or not SUMMARY_RE.search(tag.get_text()):
            continue
        node = tag
        while True:
            child = next(
                (c for c in node.find_all(True, recursive=False)
                 if _is_content(c) and SUMMARY_RE.search(c.get_text())),
                None,
            )
            if child is None:
                break
            node = child
        while (
            node.find_next_sibling(True) is None
            and node.parent is not None
            and node.parent is not root
        ):
            node = node.parent
        return node
    return None


def extract_exec_summary(page: FetchedPage) -> str:
    heading = find_summary_heading(page)
    if heading is not None:
        parts = []
        for sibling in heading.find_next_siblings(True, limit=SUMMARY_SIBLINGS):
            text = sibling.get_text().strip()
            if text:
                parts.append(text)
        return "\n\n".join(parts)[:MAX_SUMMARY_CHARS]

    for paragraph in page.soup.select(CONTENT_PARAGRAPHS):
        text = paragraph.get_text().strip()
        if text:
            return text[:MAX_SUMMARY_CHARS]
    return ""


def extract_tags(page: FetchedPage) -> list[str]:
    """
    Keywords meta plus "esg"/"sustainability" when the page text mentions them.

    Duplicates collapse on exact string equality only, so "ESG" and "esg"
    are kept as two tags.
    """
    tags: list[str] = []
    keywords = _meta(page, 'meta[name="keywords"]')
    if keywords:
        tags.extend(t.strip() for t in keywords.split(",") if t.strip())
    if ESG_RE.search(page.text):
        tags.append("esg")
    if SUSTAINABILITY_RE.search(page.text):
        tags.append("sustainability")
    return list(dict.fromkeys(tags))


def extract_metadata(page: FetchedPage) -> ExtractedMetadata:
    return ExtractedMetadata(
        company=first_non_empty(page, COMPANY_EXTRACTORS),
        title=first_non_empty(page, TITLE_EXTRACTORS),
        date=first_non_empty(page, DATE_EXTRACTORS),
        exec_summary=extract_exec_summary(page),
        tags=extract_tags(page),
    )
