"""Shared discrete clock and the process that advances it."""

from __future__ import annotations

import logging
import multiprocessing
from typing import Any, Optional

logger = logging.getLogger(__name__)


class Clock:
    """Process-shared tick counter.

    One writer (the ticker process) advances it under the lock. The
    scheduler and the generator read under the lock; workers use peek(),
    since a worker can be stopped or killed at any instant and must never
    be holding the lock when that happens.
    """

    def __init__(self, ctx: Optional[Any] = None) -> None:
        ctx = ctx or multiprocessing.get_context()
        self._value = ctx.RawValue("q", 0)
        self._lock = ctx.Lock()

    def now(self) -> int:
        with self._lock:
            return self._value.value

    def peek(self) -> int:
        return self._value.value

    def advance(self) -> int:
        with self._lock:
            self._value.value += 1
            return self._value.value


def run_clock(clock: Clock, tick_seconds: float, stop: Any) -> None:
    """Ticker process body: advance *clock* every *tick_seconds* until *stop* is set."""
    try:
        while not stop.wait(tick_seconds):
            clock.advance()
    except KeyboardInterrupt:
        pass


class ClockService:
    """Owns the Clock and its ticker process.

    Created before every other component and stopped after the run, so
    every participant sees the same tick sequence from zero.

    Args:
        tick_seconds: Wall-clock length of one simulated tick.
        ctx: Multiprocessing context used for the shared value and process.
    """

    def __init__(self, tick_seconds: float, ctx: Optional[Any] = None) -> None:
        if tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be positive, got {tick_seconds}")
        self._ctx = ctx or multiprocessing.get_context()
        self.tick_seconds = tick_seconds
        self.clock = Clock(self._ctx)
        self._stop = self._ctx.Event()
        self._process: Optional[Any] = None

    def start(self) -> Clock:
        if self._process is not None:
            raise RuntimeError("clock service already started")
        self._process = self._ctx.Process(
            target=run_clock,
            args=(self.clock, self.tick_seconds, self._stop),
            name="procsched-clock",
            daemon=True,
        )
        self._process.start()
        logger.debug("clock started (pid=%s, tick=%ss)", self._process.pid, self.tick_seconds)
        return self.clock

    def stop(self, timeout: float = 1.0) -> None:
        if self._process is None:
            return
        self._stop.set()
        self._process.join(timeout)
        if self._process.is_alive():
            self._process.kill()
            self._process.join()
        logger.debug("clock stopped at tick %d", self.clock.peek())
        self._process = None

    def __enter__(self) -> Clock:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
