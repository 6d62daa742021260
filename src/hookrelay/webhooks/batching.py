"""Partition a target snapshot into bounded-size batches."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

from hookrelay.exceptions import DispatchEngineError

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 10


def batched(items: Iterable[T], batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[list[T]]:
    """Lazily split items into lists of at most ``batch_size``, preserving order.

    The batch size is checked immediately, not on first iteration.

    Args:
        items: Items to partition.
        batch_size: Maximum items per batch (>= 1).

    Returns:
        Iterator over batches.

    Raises:
        DispatchEngineError: If batch_size is less than 1.

    Examples:
        >>> list(batched([1, 2, 3, 4, 5], 2))
        [[1, 2], [3, 4], [5]]
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise DispatchEngineError(f"batch_size must be an integer >= 1, got {batch_size!r}")
    return _iter_batches(iter(items), batch_size)


def _iter_batches(iterator: Iterator[T], batch_size: int) -> Iterator[list[T]]:
    while batch := list(islice(iterator, batch_size)):
        yield batch
