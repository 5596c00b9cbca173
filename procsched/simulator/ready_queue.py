"""FIFO ready queue of PCB handles."""

from __future__ import annotations

from collections import deque
from typing import Iterator, Optional


class ReadyQueue:
    """Ordered container of handles into a ProcessTable.

    Holds no policy logic: policies read it, the simulation mutates it.
    A handle is present at most once.
    """

    def __init__(self) -> None:
        self._queue: deque[int] = deque()

    def enqueue(self, handle: int) -> None:
        if handle in self._queue:
            raise RuntimeError(f"Handle {handle} is already in the ready queue.")
        self._queue.append(handle)

    def dequeue(self) -> Optional[int]:
        if self._queue:
            return self._queue.popleft()
        return None

    def peek(self) -> Optional[int]:
        if self._queue:
            return self._queue[0]
        return None

    def remove(self, handle: int) -> bool:
        """Unlink *handle* wherever it sits. Returns False if it was absent."""
        try:
            self._queue.remove(handle)
        except ValueError:
            return False
        return True

    def is_empty(self) -> bool:
        return len(self._queue) == 0

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[int]:
        return iter(self._queue)

    def __contains__(self, handle: object) -> bool:
        return handle in self._queue

    def __repr__(self) -> str:
        return f"ReadyQueue({list(self._queue)})"
