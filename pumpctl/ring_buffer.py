"""Fixed-capacity first-in first-out queue."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Iterator


class RingBufferError(Exception):
    """Base class for queue errors."""


class BufferFullError(RingBufferError):
    """Raised when pushing onto a full queue."""


class BufferEmptyError(RingBufferError):
    """Raised when taking from an empty queue."""


class RingBuffer:
    """A bounded FIFO queue.

    ``wait_read`` counts received frames still waiting to be read; it is
    maintained by the code that fills the queue and reset by :meth:`clear`.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.wait_read = 0
        self._items: Deque[Any] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def push(self, item: Any) -> None:
        """Append an item at the tail."""
        if self.is_full():
            raise BufferFullError("ring buffer is full")
        self._items.append(item)

    def pop(self) -> Any:
        """Remove and return the item at the head."""
        if not self._items:
            raise BufferEmptyError("ring buffer is empty")
        return self._items.popleft()

    def discard(self) -> None:
        """Drop the item at the head."""
        self.pop()

    def clear(self) -> None:
        """Remove every item and reset the pending-read count."""
        self._items.clear()
        self.wait_read = 0

    def peek_head(self) -> Any:
        """Return the item at the head without removing it."""
        if not self._items:
            raise BufferEmptyError("ring buffer is empty")
        return self._items[0]

    def peek_tail(self) -> Any:
        """Return the item at the tail without removing it."""
        if not self._items:
            raise BufferEmptyError("ring buffer is empty")
        return self._items[-1]

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return len(self._items) == self.capacity

    def free_space(self) -> int:
        """Return how many more items fit."""
        return self.capacity - len(self._items)