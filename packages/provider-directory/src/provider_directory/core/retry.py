import asyncio
from typing import Awaitable, Callable, TypeVar

from provider_directory.core.exceptions import FetchError

T = TypeVar("T")


async def with_exponential_backoff(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 1,
    base_delay_seconds: float = 5.0,
    on_retry: Callable[[int, float], None] | None = None,
    should_retry: Callable[[Exception], bool] | None = None,
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    if attempts <= 0:
        raise ValueError("attempts must be > 0")
    attempt = 0
    while True:
        try:
            return await operation()
        except FetchError as exc:
            attempt += 1
            if attempt >= attempts or (should_retry and not should_retry(exc)):
                raise FetchError(str(exc)) from exc
            delay = base_delay_seconds * (2 ** (attempt - 1))
            if on_retry:
                on_retry(attempt, delay)
            await sleep_fn(delay)
