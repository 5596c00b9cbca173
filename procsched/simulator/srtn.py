"""Shortest Remaining Time Next (SRTN) dispatch policy."""

from __future__ import annotations

from typing import Optional

from procsched.simulator.pcb import ProcessTable
from procsched.simulator.ready_queue import ReadyQueue
from procsched.simulator.scheduler_base import SchedulerBase, select_min


class SRTNScheduler(SchedulerBase):
    """
    Picks the ready process with the least remaining_time.
    Uses the live remaining budget, not the requested runtime, so a
    process that already ran competes on what it still needs.
    Ties go to the earliest arrival.
    """

    name = "srtn"

    def get_next_task(self, queue: ReadyQueue, table: ProcessTable) -> Optional[int]:
        return select_min(queue, table, key=lambda pcb: pcb.remaining_time)
