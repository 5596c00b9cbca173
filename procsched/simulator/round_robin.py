"""Round Robin dispatch policy with time-quantum preemption."""

from __future__ import annotations

from typing import Optional

from procsched.simulator.pcb import PCB, ProcessTable
from procsched.simulator.ready_queue import ReadyQueue
from procsched.simulator.scheduler_base import SchedulerBase


class RoundRobinScheduler(SchedulerBase):
    """Preemptive Round Robin scheduler.

    A process runs for at most *time_quantum* ticks before being paused
    and moved to the back of the ready queue. The simulation calls
    check_preemption() each tick; when it returns True the simulation
    pauses the worker and re-enqueues the process.

    Args:
        time_quantum: Maximum consecutive ticks before preemption.
    """

    name = "rr"

    def __init__(self, time_quantum: int = 2) -> None:
        if time_quantum <= 0:
            raise ValueError(f"time_quantum must be positive, got {time_quantum}")
        self.time_quantum: int = time_quantum

    def get_next_task(self, queue: ReadyQueue, table: ProcessTable) -> Optional[int]:
        return queue.peek()

    def check_preemption(self, pcb: PCB, ticks_on_core: int) -> bool:
        """Preempt when the process has exhausted its time quantum."""
        return ticks_on_core >= self.time_quantum and pcb.remaining_time > 0

    def __repr__(self) -> str:
        return f"RoundRobinScheduler(time_quantum={self.time_quantum})"
