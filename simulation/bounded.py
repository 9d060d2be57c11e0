"""Fixed-capacity, append-only log with oldest-first eviction."""

from __future__ import annotations

from collections import deque
from typing import Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


class BoundedLog(Generic[T]):
    """Keeps the most recent ``capacity`` items in insertion order.

    Appending to a full log evicts the oldest entry; ``evicted`` counts how
    many entries have been dropped so far.
    """

    def __init__(self, capacity: int, items: Iterable[T] = ()) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._items: deque[T] = deque(maxlen=capacity)
        self.evicted = 0
        for item in items:
            self.append(item)

    @property
    def capacity(self) -> int:
        return self._items.maxlen  # type: ignore[return-value]

    def append(self, item: T) -> None:
        if len(self._items) == self.capacity:
            self.evicted += 1
        self._items.append(item)

    def latest(self) -> Optional[T]:
        return self._items[-1] if self._items else None

    def tail(self, limit: int) -> list[T]:
        """Return up to *limit* most recent items, oldest first."""
        if limit <= 0:
            return []
        return list(self._items)[-limit:]

    def to_list(self) -> list[T]:
        return list(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
