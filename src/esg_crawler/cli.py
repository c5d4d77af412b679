"""Command-line interface for the ESG report crawler."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from esg_crawler.config import Settings
from esg_crawler.crawler import crawl
from esg_crawler.errors import ConfigError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esg-crawler",
        description="Crawl corporate websites for sustainability/ESG report candidates.",
    )
    parser.add_argument(
        "start_urls",
        nargs="*",
        help="Seed URLs (default: START_URLS from .env, or startUrls from --input)",
    )
    parser.add_argument(
        "-i", "--input",
        default=None,
        help="Path to an INPUT.json with actor-style options (startUrls, maxRequestsPerCrawl, ...)",
    )
    parser.add_argument(
        "--max-requests",
        type=int,
        default=None,
        help="Global cap on requests admitted to the crawl (default: 200)",
    )
    parser.add_argument(
        "--no-pdf-links",
        action="store_true",
        help="Disable PDF/report link detection",
    )
    parser.add_argument(
        "--follow-external",
        action="store_true",
        help="Follow links to other hosts (default: stay on each seed's host)",
    )
    parser.add_argument(
        "--reject-malformed",
        action="store_true",
        help="Refuse links whose host cannot be parsed instead of admitting them",
    )
    parser.add_argument(
        "-c", "--concurrency",
        type=int,
        default=None,
        help="Number of concurrent workers (default: 10)",
    )
    parser.add_argument(
        "--dataset-dir",
        default=None,
        help="Directory for output records (default: storage/datasets/default)",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write the crawl summary to this file (default: stdout)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        settings = Settings.from_env()
        if args.input:
            input_path = Path(args.input)
            data = json.loads(input_path.read_text(encoding="utf-8"))
            settings = Settings.from_input(data, base=settings)
            print(f"Loaded input from {input_path}", file=sys.stderr)
    except (ConfigError, OSError, json.JSONDecodeError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    # Apply CLI overrides
    overrides = {}
    if args.start_urls:
        overrides["start_urls"] = tuple(args.start_urls)
    if args.max_requests is not None:
        overrides["max_requests_per_crawl"] = args.max_requests
    if args.no_pdf_links:
        overrides["detect_pdf_links"] = False
    if args.follow_external:
        overrides["follow_internal_only"] = False
    if args.reject_malformed:
        overrides["admit_malformed_urls"] = False
    if args.concurrency is not None:
        overrides["max_concurrency"] = args.concurrency
    if args.dataset_dir:
        overrides["dataset_dir"] = args.dataset_dir
    if overrides:
        try:
            settings = replace(settings, **overrides)
        except ConfigError as exc:
            print(f"Invalid configuration: {exc}", file=sys.stderr)
            return 2

    result = crawl(settings)

    output = json.dumps(result.model_dump(), indent=2, ensure_ascii=False)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Output written to {args.output}")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
