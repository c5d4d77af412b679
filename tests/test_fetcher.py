"""Tests for esg_crawler.fetcher module."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

import httpx
import pytest

from esg_crawler.errors import FetchError
from esg_crawler.fetcher import Fetcher, _is_retryable


def _fetch(settings, handler, url="https://example.com/"):
    async def run():
        async with Fetcher(settings, transport=httpx.MockTransport(handler)) as fetcher:
            return await fetcher.fetch(url)

    return asyncio.run(run())


class TestFetch:
    def test_returns_parsed_page(self, settings):
        def handler(request):
            return httpx.Response(
                200,
                html="<html><body><h1>Hello</h1></body></html>",
            )

        page = _fetch(settings, handler)
        assert page.url == "https://example.com/"
        assert page.text == "Hello"
        assert page.soup.h1.get_text() == "Hello"

    def test_sends_user_agent(self, settings):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200, html="<p>x</p>")

        _fetch(replace(settings, user_agent="esg-test/1.0"), handler)
        assert seen["ua"] == "esg-test/1.0"

    def test_resolved_url_after_redirect(self, settings):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://example.com/new"})
            return httpx.Response(200, html="<p>moved</p>")

        page = _fetch(settings, handler, url="https://example.com/old")
        assert page.url == "https://example.com/new"

    def test_retries_server_errors(self, settings):
        calls = []

        def handler(request):
            calls.append(request.url)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, html="<p>ok</p>")

        page = _fetch(settings, handler)
        assert page.text == "ok"
        assert len(calls) == 3

    def test_gives_up_after_retries(self, settings):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(500)

        with pytest.raises(FetchError, match="Failed to fetch"):
            _fetch(replace(settings, max_request_retries=2), handler)
        assert len(calls) == 3

    def test_client_errors_not_retried(self, settings):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(404)

        with pytest.raises(FetchError):
            _fetch(settings, handler)
        assert len(calls) == 1

    def test_transport_error_wrapped(self, settings):
        def handler(request):
            raise httpx.ConnectError("Connection refused")

        with pytest.raises(FetchError, match="Connection refused"):
            _fetch(replace(settings, max_request_retries=0), handler)

    def test_non_html_rejected(self, settings):
        def handler(request):
            return httpx.Response(
                200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"}
            )

        with pytest.raises(FetchError, match="Unsupported content type"):
            _fetch(settings, handler, url="https://example.com/r.pdf")

    def test_non_html_rejection_is_logged(self, settings, caplog):
        def handler(request):
            return httpx.Response(
                200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"}
            )

        caplog.set_level(logging.ERROR, logger="esg_crawler.fetcher")
        with pytest.raises(FetchError):
            _fetch(settings, handler, url="https://example.com/r.pdf")

        messages = [r.getMessage() for r in caplog.records if r.name == "esg_crawler.fetcher"]
        assert any("https://example.com/r.pdf" in m for m in messages)


class TestProxyRotation:
    def test_one_client_per_proxy(self, settings):
        async def run():
            fetcher = Fetcher(replace(settings, proxy_urls=("http://p1:8000", "http://p2:8000")))
            clients = [next(fetcher._rotation) for _ in range(4)]
            await fetcher.aclose()
            return fetcher._clients, clients

        all_clients, rotated = asyncio.run(run())
        assert len(all_clients) == 2
        assert rotated == [all_clients[0], all_clients[1], all_clients[0], all_clients[1]]


class TestIsRetryable:
    def _status_error(self, status):
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(status, request=request)
        return httpx.HTTPStatusError("error", request=request, response=response)

    def test_server_errors(self):
        assert _is_retryable(self._status_error(502))
        assert _is_retryable(self._status_error(429))

    def test_client_errors(self):
        assert not _is_retryable(self._status_error(403))

    def test_other_exceptions(self):
        assert _is_retryable(httpx.ReadTimeout("slow"))
        assert not _is_retryable(ValueError("boom"))
