from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 500


@dataclass(frozen=True)
class BatchBounds:
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def batch_bounds(total: int, batch_size: int = DEFAULT_BATCH_SIZE) -> list[BatchBounds]:
    """Split ``total`` items into contiguous half-open ranges of at most ``batch_size``.

    Yields ``ceil(total / batch_size)`` ranges. A total that is an exact multiple
    of the batch size produces no trailing empty range.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be > 0")
    if total < 0:
        raise ValueError("total must be >= 0")
    full_batches, remainder = divmod(total, batch_size)
    bounds = [
        BatchBounds(index=i, start=i * batch_size, end=(i + 1) * batch_size)
        for i in range(full_batches)
    ]
    if remainder:
        start = full_batches * batch_size
        bounds.append(BatchBounds(index=full_batches, start=start, end=start + remainder))
    return bounds


def split_batches(items: Sequence[T], batch_size: int = DEFAULT_BATCH_SIZE) -> list[Sequence[T]]:
    return [items[b.start : b.end] for b in batch_bounds(len(items), batch_size)]
