"""Centralized configuration loaded from .env or actor input."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from esg_crawler.errors import ConfigError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _load_env() -> None:
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
    else:
        load_dotenv()


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: Any, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if number < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {number}")
    return number


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _parse_start_urls(value: Any) -> tuple[str, ...]:
    """Accept plain strings or Apify-style ``{"url": ...}`` request objects."""
    if isinstance(value, str):
        urls = _split_list(value)
    else:
        urls = []
        for item in value or []:
            if isinstance(item, dict):
                item = item.get("url", "")
            if isinstance(item, str) and item.strip():
                urls.append(item.strip())
        urls = tuple(urls)
    if not urls:
        raise ConfigError("startUrls must contain at least one URL")
    return tuple(urls)


@dataclass(frozen=True)
class Settings:
    # Crawl scope
    start_urls: tuple[str, ...] = ("https://example.com",)
    max_requests_per_crawl: int = 200
    detect_pdf_links: bool = True
    follow_internal_only: bool = True
    admit_malformed_urls: bool = True  # current policy: unparseable hosts pass the scope check

    # Fetching
    max_concurrency: int = 10
    request_timeout: float = 30.0
    max_request_retries: int = 3
    retry_backoff: float = 1.0
    proxy_urls: tuple[str, ...] = ()
    user_agent: str = DEFAULT_USER_AGENT

    # Output
    dataset_dir: str = "storage/datasets/default"

    def __post_init__(self) -> None:
        # Also runs on dataclasses.replace, so CLI overrides are checked too
        if self.max_concurrency < 1:
            raise ConfigError(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if self.max_requests_per_crawl < 0:
            raise ConfigError(
                f"max_requests_per_crawl must be >= 0, got {self.max_requests_per_crawl}"
            )
        if self.max_request_retries < 0:
            raise ConfigError(
                f"max_request_retries must be >= 0, got {self.max_request_retries}"
            )

    @classmethod
    def from_env(cls) -> Settings:
        _load_env()
        defaults = cls()
        start_urls = os.getenv("START_URLS")
        return cls(
            start_urls=_parse_start_urls(start_urls) if start_urls else defaults.start_urls,
            max_requests_per_crawl=_parse_int(
                "MAX_REQUESTS_PER_CRAWL",
                os.getenv("MAX_REQUESTS_PER_CRAWL", defaults.max_requests_per_crawl),
            ),
            detect_pdf_links=_parse_bool(
                "DETECT_PDF_LINKS", os.getenv("DETECT_PDF_LINKS", "true")
            ),
            follow_internal_only=_parse_bool(
                "FOLLOW_INTERNAL_ONLY", os.getenv("FOLLOW_INTERNAL_ONLY", "true")
            ),
            admit_malformed_urls=_parse_bool(
                "ADMIT_MALFORMED_URLS", os.getenv("ADMIT_MALFORMED_URLS", "true")
            ),
            max_concurrency=_parse_int(
                "MAX_CONCURRENCY", os.getenv("MAX_CONCURRENCY", defaults.max_concurrency), 1
            ),
            request_timeout=_parse_float(
                "REQUEST_TIMEOUT", os.getenv("REQUEST_TIMEOUT", defaults.request_timeout)
            ),
            max_request_retries=_parse_int(
                "MAX_REQUEST_RETRIES",
                os.getenv("MAX_REQUEST_RETRIES", defaults.max_request_retries),
            ),
            retry_backoff=_parse_float(
                "RETRY_BACKOFF", os.getenv("RETRY_BACKOFF", defaults.retry_backoff)
            ),
            proxy_urls=_split_list(os.getenv("PROXY_URLS", "")),
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
            dataset_dir=os.getenv("DATASET_DIR", defaults.dataset_dir),
        )

    @classmethod
    def from_input(cls, data: dict[str, Any], base: Settings | None = None) -> Settings:
        """
        Build settings from actor input (the camelCase keys of an INPUT.json).

        Keys that are absent keep the value from ``base`` (or the defaults).
        """
        base = base or cls()
        values: dict[str, Any] = {
            "start_urls": base.start_urls,
            "max_requests_per_crawl": base.max_requests_per_crawl,
            "detect_pdf_links": base.detect_pdf_links,
            "follow_internal_only": base.follow_internal_only,
            "admit_malformed_urls": base.admit_malformed_urls,
            "max_concurrency": base.max_concurrency,
            "request_timeout": base.request_timeout,
            "max_request_retries": base.max_request_retries,
            "retry_backoff": base.retry_backoff,
            "proxy_urls": base.proxy_urls,
            "user_agent": base.user_agent,
            "dataset_dir": base.dataset_dir,
        }
        if "startUrls" in data:
            values["start_urls"] = _parse_start_urls(data["startUrls"])
        if "maxRequestsPerCrawl" in data:
            values["max_requests_per_crawl"] = _parse_int(
                "maxRequestsPerCrawl", data["maxRequestsPerCrawl"]
            )
        if "detectPdfLinks" in data:
            values["detect_pdf_links"] = _parse_bool("detectPdfLinks", data["detectPdfLinks"])
        if "followInternalOnly" in data:
            values["follow_internal_only"] = _parse_bool(
                "followInternalOnly", data["followInternalOnly"]
            )
        if "admitMalformedUrls" in data:
            values["admit_malformed_urls"] = _parse_bool(
                "admitMalformedUrls", data["admitMalformedUrls"]
            )
        if "maxConcurrency" in data:
            values["max_concurrency"] = _parse_int("maxConcurrency", data["maxConcurrency"], 1)
        if "requestTimeoutSecs" in data:
            values["request_timeout"] = _parse_float(
                "requestTimeoutSecs", data["requestTimeoutSecs"]
            )
        if "maxRequestRetries" in data:
            values["max_request_retries"] = _parse_int(
                "maxRequestRetries", data["maxRequestRetries"]
            )
        if "retryBackoff" in data:
            values["retry_backoff"] = _parse_float("retryBackoff", data["retryBackoff"])
        if "proxyUrls" in data:
            proxies = data["proxyUrls"]
            values["proxy_urls"] = (
                _split_list(proxies) if isinstance(proxies, str) else tuple(proxies or ())
            )
        if data.get("userAgent"):
            values["user_agent"] = str(data["userAgent"])
        if data.get("datasetDir"):
            values["dataset_dir"] = str(data["datasetDir"])
        return cls(**values)
