from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from provider_directory.core.exceptions import FetchError, FetchTemporaryError
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.refresh import FeedFetcher
from provider_directory.core.retry import with_exponential_backoff

logger = logging.getLogger(__name__)

NRPZS_OPEN_DATA_URL = "https://opendata.mzcr.cz/data/nrpzs/narodni-registr-poskytovatelu-zdravotnich-sluzeb.csv"


class OpenDataFeedFetcher(FeedFetcher):
    def __init__(
        self,
        url: str = NRPZS_OPEN_DATA_URL,
        connect_timeout_seconds: float = 10.0,
        read_timeout_seconds: float = 300.0,
        max_attempts: int = 1,
        retry_base_delay_seconds: float = 5.0,
        metrics: InMemoryRefreshMetricsCollector | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._url = url
        self._timeout = httpx.Timeout(
            connect=connect_timeout_seconds,
            read=read_timeout_seconds,
            write=connect_timeout_seconds,
            pool=connect_timeout_seconds,
        )
        self._max_attempts = max_attempts
        self._retry_base_delay_seconds = retry_base_delay_seconds
        self._metrics = metrics
        self._client_factory = client_factory

    async def fetch(self) -> bytes:
        factory = self._client_factory or (
            lambda: httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        )
        async with factory() as client:
            payload = await with_exponential_backoff(
                lambda: self._request_once(client),
                attempts=self._max_attempts,
                base_delay_seconds=self._retry_base_delay_seconds,
                should_retry=lambda exc: isinstance(exc, FetchTemporaryError),
                on_retry=self._on_retry,
            )
        logger.info("feed_fetched", extra={"component": "feed_fetcher", "byte_count": len(payload)})
        return payload

    async def _request_once(self, client: httpx.AsyncClient) -> bytes:
        try:
            response = await client.get(self._url)
        except httpx.TimeoutException as exc:
            raise FetchTemporaryError(f"feed request timed out: url={self._url}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"feed request error: url={self._url}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            self._record_http_error(response.status_code)
            raise FetchTemporaryError(f"feed temporary error: status={response.status_code}")
        if response.status_code >= 400:
            self._record_http_error(response.status_code)
            raise FetchError(f"feed request rejected: status={response.status_code}")
        return response.content

    def _record_http_error(self, code: int) -> None:
        if self._metrics:
            self._metrics.increment_fetch_http_error(code)

    def _on_retry(self, attempt: int, delay: float) -> None:
        logger.warning(
            "feed_fetch_retry",
            extra={"component": "feed_fetcher", "attempt": attempt, "delay_seconds": delay},
        )
        if self._metrics:
            self._metrics.increment_fetch_retry()
