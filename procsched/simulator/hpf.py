"""Highest Priority First (HPF) dispatch policy."""

from __future__ import annotations

from typing import Optional

from procsched.simulator.pcb import ProcessTable
from procsched.simulator.ready_queue import ReadyQueue
from procsched.simulator.scheduler_base import SchedulerBase, select_min


class HPFScheduler(SchedulerBase):
    """Picks the ready process with the lowest priority number.

    Ties go to the earliest arrival. The policy is only asked when the CPU
    is idle, so a more urgent arrival waits for the running burst to end.
    """

    name = "hpf"

    def get_next_task(self, queue: ReadyQueue, table: ProcessTable) -> Optional[int]:
        return select_min(queue, table, key=lambda pcb: pcb.priority)
