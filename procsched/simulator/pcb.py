"""Process control blocks and the arena that owns them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional


class ProcessState(Enum):
    """Lifecycle state of a simulated process."""

    READY = auto()
    RUNNING = auto()
    # Reserved: no I/O is modelled, so nothing ever blocks.
    BLOCKED = auto()
    FINISHED = auto()


@dataclass(frozen=True)
class WorkloadDescriptor:
    """One entry of a workload: what arrives, when, and for how long."""

    process_id: int
    arrival_time: int
    runtime: int
    priority: int = 0

    def __post_init__(self) -> None:
        if self.runtime <= 0:
            raise ValueError(f"runtime must be positive, got {self.runtime}")
        if self.arrival_time < 0:
            raise ValueError(
                f"arrival_time must be non-negative, got {self.arrival_time}"
            )


class PCB:
    """Scheduler-side bookkeeping for one workload instance.

    A PCB is created when the arrival message is ingested and lives in the
    ProcessTable until the run ends. ``remaining_time`` only moves while the
    process is RUNNING and ``waiting_time`` only while it is READY.
    """

    __slots__ = (
        "process_id",
        "arrival_time",
        "runtime",
        "priority",
        "remaining_time",
        "waiting_time",
        "execution_time",
        "start_time",
        "finish_time",
        "last_stop_time",
        "state",
        "pid",
        "started",
    )

    def __init__(
        self,
        process_id: int,
        arrival_time: int,
        runtime: int,
        priority: int = 0,
    ) -> None:
        if runtime <= 0:
            raise ValueError(f"runtime must be positive, got {runtime}")

        self.process_id: int = process_id
        self.arrival_time: int = arrival_time
        self.runtime: int = runtime
        self.priority: int = priority
        self.remaining_time: int = runtime
        self.waiting_time: int = 0
        self.execution_time: int = 0
        self.start_time: Optional[int] = None
        self.finish_time: Optional[int] = None
        self.last_stop_time: Optional[int] = None
        self.state: ProcessState = ProcessState.READY
        self.pid: Optional[int] = None
        self.started: bool = False

    @classmethod
    def from_descriptor(cls, descriptor: WorkloadDescriptor) -> "PCB":
        return cls(
            process_id=descriptor.process_id,
            arrival_time=descriptor.arrival_time,
            runtime=descriptor.runtime,
            priority=descriptor.priority,
        )

    def consume_tick(self) -> None:
        """Charge one tick of CPU time to a RUNNING process."""
        if self.state is not ProcessState.RUNNING:
            raise RuntimeError(
                f"Process {self.process_id} is {self.state.name}; only RUNNING "
                "processes consume CPU time."
            )
        if self.remaining_time > 0:
            self.remaining_time -= 1
            self.execution_time += 1

    def exhaust(self) -> None:
        """Mark the remaining budget as used up (worker reported completion).

        Only ticks charged by consume_tick count as executed.
        """
        self.remaining_time = 0

    def is_complete(self) -> bool:
        return self.remaining_time == 0

    @property
    def turnaround_time(self) -> Optional[int]:
        """Time from arrival to finish, or None if not yet finished."""
        if self.finish_time is None:
            return None
        return self.finish_time - self.arrival_time

    @property
    def weighted_turnaround(self) -> Optional[float]:
        """Turnaround divided by requested runtime, or None if not finished."""
        if self.turnaround_time is None:
            return None
        return self.turnaround_time / self.runtime

    def __repr__(self) -> str:
        return (
            f"PCB(id={self.process_id}, state={self.state.name}, "
            f"arrival={self.arrival_time}, runtime={self.runtime}, "
            f"remaining={self.remaining_time}, waiting={self.waiting_time})"
        )


class ProcessTable:
    """Append-only arena of PCBs addressed by stable integer handles."""

    def __init__(self) -> None:
        self._slots: List[PCB] = []

    def add(self, pcb: PCB) -> int:
        self._slots.append(pcb)
        return len(self._slots) - 1

    def __getitem__(self, handle: int) -> PCB:
        return self._slots[handle]

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[PCB]:
        return iter(self._slots)
