from __future__ import annotations

import httpx
import pytest

from provider_directory.core.exceptions import FetchError
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.feed.fetcher import OpenDataFeedFetcher

FEED_URL = "https://opendata.example.cz/nrpzs.csv"


def _fetcher(handler, **kwargs) -> OpenDataFeedFetcher:
    transport = httpx.MockTransport(handler)
    return OpenDataFeedFetcher(
        url=FEED_URL,
        retry_base_delay_seconds=0.0,
        client_factory=lambda: httpx.AsyncClient(transport=transport, timeout=5.0),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_feed_fetcher_returns_raw_body() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(status_code=200, content=b"ZdravotnickeZarizeniId,PCZ\n1,2\n")

    payload = await _fetcher(handler).fetch()

    assert payload == b"ZdravotnickeZarizeniId,PCZ\n1,2\n"
    assert requested == [FEED_URL]


@pytest.mark.asyncio
async def test_feed_fetcher_does_not_retry_client_errors() -> None:
    calls = {"count": 0}
    metrics = InMemoryRefreshMetricsCollector()

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(status_code=404)

    with pytest.raises(FetchError):
        await _fetcher(handler, max_attempts=3, metrics=metrics).fetch()

    assert calls["count"] == 1
    assert metrics.fetch_http_errors_total["404"] == 1


@pytest.mark.asyncio
async def test_feed_fetcher_retries_server_errors_when_configured() -> None:
    calls = {"count": 0}
    metrics = InMemoryRefreshMetricsCollector()

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(status_code=503)
        return httpx.Response(status_code=200, content=b"ok")

    payload = await _fetcher(handler, max_attempts=3, metrics=metrics).fetch()

    assert payload == b"ok"
    assert calls["count"] == 2
    assert metrics.fetch_retry_total == 1
    assert metrics.fetch_http_errors_total["503"] == 1


@pytest.mark.asyncio
async def test_feed_fetcher_fails_fast_by_default() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(status_code=502)

    with pytest.raises(FetchError):
        await _fetcher(handler).fetch()
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_feed_fetcher_maps_timeout_to_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("feed too slow", request=request)

    with pytest.raises(FetchError):
        await _fetcher(handler).fetch()


@pytest.mark.asyncio
async def test_feed_fetcher_maps_transport_error_to_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError):
        await _fetcher(handler).fetch()
