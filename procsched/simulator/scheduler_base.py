"""Abstract base class for all dispatch policies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

from procsched.simulator.pcb import PCB, ProcessTable
from procsched.simulator.ready_queue import ReadyQueue


class SchedulerBase(ABC):
    """Interface that every dispatch policy must implement.

    The simulation owns the ready queue and the process table; a policy
    only inspects them and names the handle that should run next. It never
    removes anything from the queue itself, so a failed dispatch leaves the
    queue exactly as it was.

    Policies are consulted only when the CPU is idle. Preemption is a
    separate hook, check_preemption, which defaults to never.
    """

    name: str = "base"

    @abstractmethod
    def get_next_task(self, queue: ReadyQueue, table: ProcessTable) -> Optional[int]:
        """Select the handle of the next process to run on an idle CPU.

        Args:
            queue: The current ready queue, in insertion order.
            table: The process table the handles point into.

        Returns:
            A handle present in *queue*, or None if the queue is empty.
        """

    def check_preemption(self, pcb: PCB, ticks_on_core: int) -> bool:
        """Decide whether the running *pcb* should give up the CPU.

        Called once per tick while a process is running, after its tick
        has been accounted.

        Args:
            pcb: The currently running process.
            ticks_on_core: Ticks the process has run since its last dispatch.

        Returns:
            True to pause the process and move it to the tail of the queue.
        """
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def select_min(
    queue: ReadyQueue,
    table: ProcessTable,
    key: Callable[[PCB], int],
) -> Optional[int]:
    """Return the queued handle minimising (key, arrival_time).

    Remaining ties go to the entry closest to the queue head.
    """
    best: Optional[int] = None
    best_rank: Optional[Tuple[int, int]] = None
    for handle in queue:
        pcb = table[handle]
        rank = (key(pcb), pcb.arrival_time)
        if best_rank is None or rank < best_rank:
            best, best_rank = handle, rank
    return best
