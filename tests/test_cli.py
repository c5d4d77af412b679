"""Tests for esg_crawler.cli module."""

from __future__ import annotations

import json
from io import StringIO
from unittest.mock import patch

import pytest

from esg_crawler.cli import build_parser, main
from esg_crawler.config import Settings
from esg_crawler.errors import ConfigError
from esg_crawler.models import CrawlResult


class TestBuildParser:
    def test_start_urls_optional(self):
        args = build_parser().parse_args([])
        assert args.start_urls == []

    def test_parses_start_urls(self):
        args = build_parser().parse_args(["https://a.example", "https://b.example"])
        assert args.start_urls == ["https://a.example", "https://b.example"]

    def test_flags(self):
        args = build_parser().parse_args([
            "https://a.example", "--max-requests", "5", "--no-pdf-links",
            "--follow-external", "--reject-malformed", "-c", "3",
            "--dataset-dir", "out", "-o", "summary.json", "-v",
        ])
        assert args.max_requests == 5
        assert args.no_pdf_links is True
        assert args.follow_external is True
        assert args.reject_malformed is True
        assert args.concurrency == 3
        assert args.dataset_dir == "out"
        assert args.output == "summary.json"
        assert args.verbose is True

    def test_default_values(self):
        args = build_parser().parse_args([])
        assert args.input is None
        assert args.max_requests is None
        assert args.no_pdf_links is False
        assert args.follow_external is False
        assert args.reject_malformed is False
        assert args.concurrency is None
        assert args.output is None
        assert args.verbose is False


class TestMain:
    @pytest.fixture()
    def crawl_result(self):
        return CrawlResult(
            start_urls=["https://example.com"],
            requests_admitted=3,
            pages_fetched=3,
            records_emitted=2,
            dataset_dir="storage/datasets/default",
        )

    def test_outputs_json_to_stdout(self, crawl_result):
        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl", return_value=crawl_result), \
             patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            result = main(["https://example.com"])

        assert result == 0
        parsed = json.loads(mock_stdout.getvalue())
        assert parsed["records_emitted"] == 2
        assert parsed["start_urls"] == ["https://example.com"]

    def test_writes_to_file(self, crawl_result, tmp_path):
        outfile = tmp_path / "summary.json"
        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl", return_value=crawl_result):
            result = main(["https://example.com", "-o", str(outfile)])

        assert result == 0
        assert json.loads(outfile.read_text())["pages_fetched"] == 3

    def test_cli_overrides_settings(self, crawl_result):
        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl", return_value=crawl_result) as mock_crawl:
            main([
                "https://acme.example", "--max-requests", "7", "--no-pdf-links",
                "--follow-external", "--reject-malformed", "-c", "2", "--dataset-dir", "out",
            ])

        settings = mock_crawl.call_args.args[0]
        assert settings.start_urls == ("https://acme.example",)
        assert settings.max_requests_per_crawl == 7
        assert settings.detect_pdf_links is False
        assert settings.follow_internal_only is False
        assert settings.admit_malformed_urls is False
        assert settings.max_concurrency == 2
        assert settings.dataset_dir == "out"

    def test_loads_input_file(self, crawl_result, tmp_path):
        input_file = tmp_path / "INPUT.json"
        input_file.write_text(json.dumps({
            "startUrls": [{"url": "https://acme.example/esg"}],
            "maxRequestsPerCrawl": 20,
            "followInternalOnly": False,
        }))

        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl", return_value=crawl_result) as mock_crawl:
            main(["--input", str(input_file)])

        settings = mock_crawl.call_args.args[0]
        assert settings.start_urls == ("https://acme.example/esg",)
        assert settings.max_requests_per_crawl == 20
        assert settings.follow_internal_only is False

    def test_positional_urls_override_input(self, crawl_result, tmp_path):
        input_file = tmp_path / "INPUT.json"
        input_file.write_text(json.dumps({"startUrls": ["https://from-input.example"]}))

        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl", return_value=crawl_result) as mock_crawl:
            main(["https://from-cli.example", "--input", str(input_file)])

        assert mock_crawl.call_args.args[0].start_urls == ("https://from-cli.example",)

    def test_invalid_config_returns_2(self):
        with patch("esg_crawler.cli.Settings.from_env", side_effect=ConfigError("bad value")), \
             patch("esg_crawler.cli.crawl") as mock_crawl:
            assert main([]) == 2
        mock_crawl.assert_not_called()

    def test_missing_input_file_returns_2(self, tmp_path):
        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl") as mock_crawl:
            assert main(["--input", str(tmp_path / "missing.json")]) == 2
        mock_crawl.assert_not_called()

    @pytest.mark.parametrize("flags", [["-c", "0"], ["--max-requests", "-5"]])
    def test_invalid_override_returns_2(self, flags):
        with patch("esg_crawler.cli.Settings.from_env", return_value=Settings()), \
             patch("esg_crawler.cli.crawl") as mock_crawl, \
             patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            assert main(["https://example.com", *flags]) == 2

        mock_crawl.assert_not_called()
        assert "Invalid configuration" in mock_stderr.getvalue()
