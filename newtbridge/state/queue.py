"""Single-flight FIFO queue for device requests."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class CommandQueue(Generic[T]):
    """FIFO queue whose head is the one request in flight.

    The execute handler runs synchronously whenever an item becomes head,
    either from :meth:`enqueue` on an empty queue or from :meth:`advance`.
    The handler may itself call :meth:`advance` to fail fast.
    """

    def __init__(self, execute_handler: Callable[[T], None] | None = None) -> None:
        self._items: deque[T] = deque()
        self.execute_handler = execute_handler

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def enqueue(self, item: T) -> None:
        self._items.append(item)
        if len(self._items) == 1:
            self._execute(item)

    def peek(self) -> T | None:
        return self._items[0] if self._items else None

    def advance(self, finished: T | None = None) -> None:
        """Drop the head and execute the next item.

        When *finished* is given the head is only dropped if it is that item;
        a completion callback may already have cleared or refilled the queue.
        """
        if finished is not None and self.peek() is not finished:
            return
        if self._items:
            self._items.popleft()
        head = self.peek()
        if head is not None:
            self._execute(head)

    def discard(self, item: T) -> bool:
        """Remove a waiting *item*; the head is never removed this way."""
        for index, queued in enumerate(self._items):
            if queued is item:
                if index == 0:
                    return False
                del self._items[index]
                return True
        return False

    def clear(self) -> None:
        self._items.clear()

    def _execute(self, item: T) -> None:
        if self.execute_handler is not None:
            self.execute_handler(item)


__all__ = ["CommandQueue"]
