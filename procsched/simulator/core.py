"""The single simulated CPU."""

from __future__ import annotations

from typing import Optional


class Core:
    """A CPU that holds at most one process at a time.

    Tracks which handle is running and for how many ticks since its last
    dispatch; the latter is the round robin quantum counter.
    """

    __slots__ = ("current_task", "ticks_on_core")

    def __init__(self) -> None:
        self.current_task: Optional[int] = None
        self.ticks_on_core: int = 0

    def assign_task(self, handle: int) -> None:
        """Give the CPU to *handle* and reset the quantum counter.

        Raises:
            RuntimeError: If the core already has a running process.
        """
        if self.current_task is not None:
            raise RuntimeError(
                f"Core is busy with handle {self.current_task}; "
                f"cannot assign handle {handle}."
            )
        self.current_task = handle
        self.ticks_on_core = 0

    def tick(self) -> int:
        """Count one more tick for the running process."""
        if self.current_task is not None:
            self.ticks_on_core += 1
        return self.ticks_on_core

    def release(self) -> Optional[int]:
        """Take the running handle off the CPU and return it."""
        handle = self.current_task
        self.current_task = None
        self.ticks_on_core = 0
        return handle

    def is_idle(self) -> bool:
        return self.current_task is None

    def __repr__(self) -> str:
        return f"Core(task={self.current_task if self.current_task is not None else 'idle'}, ticks={self.ticks_on_core})"
