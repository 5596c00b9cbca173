"""Type-discriminated message channel between processes."""

from __future__ import annotations

import multiprocessing
import queue
from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Deque, Dict, Optional

from procsched.simulator.pcb import WorkloadDescriptor


class MessageType(Enum):
    ARRIVAL = auto()
    END = auto()
    COMPLETION = auto()


@dataclass(frozen=True)
class Message:
    """A single channel message; which fields matter depends on ``type``."""

    type: MessageType
    process_id: int = -1
    arrival_time: int = 0
    runtime: int = 0
    priority: int = 0
    pid: Optional[int] = None

    @classmethod
    def arrival(cls, descriptor: WorkloadDescriptor) -> "Message":
        return cls(
            type=MessageType.ARRIVAL,
            process_id=descriptor.process_id,
            arrival_time=descriptor.arrival_time,
            runtime=descriptor.runtime,
            priority=descriptor.priority,
        )

    @classmethod
    def end(cls) -> "Message":
        return cls(type=MessageType.END)

    @classmethod
    def completion(cls, pid: int) -> "Message":
        return cls(type=MessageType.COMPLETION, pid=pid)

    def to_descriptor(self) -> WorkloadDescriptor:
        if self.type is not MessageType.ARRIVAL:
            raise ValueError(f"{self.type.name} message carries no workload entry")
        return WorkloadDescriptor(
            process_id=self.process_id,
            arrival_time=self.arrival_time,
            runtime=self.runtime,
            priority=self.priority,
        )


class Channel:
    """Ordered many-to-one message channel with non-blocking receive by type.

    Messages are pulled off the underlying queue into per-type buffers, so
    reading one type never reorders or drops another. Receives never block;
    an empty, closed or broken queue simply yields nothing.

    Args:
        transport: Any object with ``put`` and ``get_nowait``. Defaults to a
            ``multiprocessing.Queue``.
    """

    def __init__(self, transport: Optional[Any] = None) -> None:
        self._transport = transport if transport is not None else multiprocessing.Queue()
        self._buffers: Dict[MessageType, Deque[Message]] = defaultdict(deque)

    @classmethod
    def create(cls, ctx: Optional[Any] = None) -> "Channel":
        ctx = ctx or multiprocessing.get_context()
        return cls(ctx.Queue())

    def send(self, message: Message) -> None:
        self._transport.put(message)

    def receive(self, kind: MessageType) -> Optional[Message]:
        """Return the oldest pending message of *kind*, or None."""
        self._pull()
        buffered = self._buffers[kind]
        if buffered:
            return buffered.popleft()
        return None

    def has_pending(self, kind: MessageType) -> bool:
        """True if a message of *kind* was received but not yet consumed."""
        return bool(self._buffers[kind])

    def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def _pull(self) -> None:
        while True:
            try:
                message = self._transport.get_nowait()
            except (queue.Empty, OSError, EOFError, ValueError):
                return
            self._buffers[message.type].append(message)
