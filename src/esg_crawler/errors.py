"""Exception hierarchy for the crawler."""

from __future__ import annotations


class CrawlerError(Exception):
    """Base class for all crawler errors."""


class ConfigError(CrawlerError, ValueError):
    """Raised when a configuration value cannot be used."""


class MalformedUrlError(CrawlerError, ValueError):
    """Raised when a URL has no parseable host."""


class FetchError(CrawlerError):
    """Raised when a page cannot be fetched after all retries."""


class ExtractionError(CrawlerError):
    """Raised when processing a fetched page fails."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class SinkError(CrawlerError):
    """Raised when a record cannot be written to the dataset."""
