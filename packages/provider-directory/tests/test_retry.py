import pytest

from provider_directory.core.exceptions import FetchError, FetchTemporaryError
from provider_directory.core.retry import with_exponential_backoff


@pytest.mark.asyncio
async def test_backoff_retries_until_success() -> None:
    state = {"count": 0}
    delays: list[float] = []

    async def flaky_operation() -> str:
        state["count"] += 1
        if state["count"] < 3:
            raise FetchTemporaryError("temporary failure")
        return "ok"

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    result = await with_exponential_backoff(
        flaky_operation, attempts=3, base_delay_seconds=2.0, sleep_fn=record_sleep
    )

    assert result == "ok"
    assert state["count"] == 3
    assert delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_backoff_raises_after_last_attempt() -> None:
    async def failing_operation() -> str:
        raise FetchTemporaryError("still down")

    with pytest.raises(FetchError):
        await with_exponential_backoff(failing_operation, attempts=2, base_delay_seconds=0.0)


@pytest.mark.asyncio
async def test_backoff_stops_when_error_is_not_retryable() -> None:
    state = {"count": 0}

    async def rejected_operation() -> str:
        state["count"] += 1
        raise FetchError("404")

    with pytest.raises(FetchError):
        await with_exponential_backoff(
            rejected_operation,
            attempts=5,
            base_delay_seconds=0.0,
            should_retry=lambda exc: isinstance(exc, FetchTemporaryError),
        )
    assert state["count"] == 1


@pytest.mark.asyncio
async def test_backoff_requires_positive_attempts() -> None:
    async def operation() -> str:
        return "ok"

    with pytest.raises(ValueError):
        await with_exponential_backoff(operation, attempts=0)
