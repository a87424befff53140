"""Batch partitioning of discovered record IDs."""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass(frozen=True)
class Batch:
    """An ordered group of record IDs owned by exactly one worker."""

    number: int
    record_ids: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.record_ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self.record_ids)


def partition_batches(record_ids: Iterable[int], batch_size: int) -> Iterator[Batch]:
    """
    Split record IDs into consecutive batches of ``batch_size``.

    The partitioner takes ownership of the IDs. A deque is drained from the
    front in place; any other iterable is first copied into a private deque.
    Either way every ID lands in exactly one batch and batch order matches
    input order. Only the last batch may be short.

    Args:
        record_ids: Ordered record IDs
        batch_size: Maximum IDs per batch (>= 1)

    Yields:
        Batch objects numbered from 1

    Raises:
        ValueError: If batch_size is not positive
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"Invalid batch_size: {batch_size!r}. Must be >= 1.")

    pending = record_ids if isinstance(record_ids, deque) else deque(record_ids)
    return _drain(pending, batch_size)


def _drain(pending: deque, batch_size: int) -> Iterator[Batch]:
    number = 0
    while pending:
        take = min(batch_size, len(pending))
        number += 1
        yield Batch(number=number, record_ids=tuple(pending.popleft() for _ in range(take)))
