"""Performance metrics: run-time accumulation and the end-of-run summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from procsched.simulator.pcb import PCB, ProcessState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Summary:
    """The four figures reported at shutdown, each rounded to 2 decimals."""

    cpu_utilization: float
    avg_weighted_turnaround: float
    avg_waiting_time: float
    std_weighted_turnaround: float

    def lines(self) -> List[str]:
        return [
            f"CPU utilization = {self.cpu_utilization:.2f}%",
            f"Avg WTA = {self.avg_weighted_turnaround:.2f}",
            f"Avg Waiting = {self.avg_waiting_time:.2f}",
            f"Std WTA = {self.std_weighted_turnaround:.2f}",
        ]


class MetricsAccumulator:
    """Running sums folded in once per finished process."""

    def __init__(self) -> None:
        self.total_waiting_time: int = 0
        self.total_runtime: int = 0
        self.total_wta: float = 0.0
        self.total_wta_squared: float = 0.0
        self.finished_count: int = 0

    def record(self, pcb: PCB) -> None:
        """Fold a FINISHED *pcb* into the totals."""
        wta = pcb.weighted_turnaround
        if pcb.state is not ProcessState.FINISHED or wta is None:
            raise ValueError(f"Process {pcb.process_id} has not finished")
        self.total_waiting_time += pcb.waiting_time
        self.total_runtime += pcb.execution_time
        self.total_wta += wta
        self.total_wta_squared += wta * wta
        self.finished_count += 1

    def summary(self, total_time: int) -> Summary:
        """Build the end-of-run summary for a run that lasted *total_time* ticks.

        The standard deviation is the population one, sqrt(E[x^2] - E[x]^2).
        """
        if self.finished_count == 0:
            return Summary(0.0, 0.0, 0.0, 0.0)

        n = self.finished_count
        utilization = 100.0 * self.total_runtime / total_time if total_time > 0 else 0.0
        avg_wta = self.total_wta / n
        avg_waiting = self.total_waiting_time / n
        # Clamp float noise below zero before the sqrt.
        variance = max(0.0, self.total_wta_squared / n - avg_wta * avg_wta)
        std_wta = float(np.sqrt(variance))

        return Summary(
            cpu_utilization=round(utilization, 2),
            avg_weighted_turnaround=round(avg_wta, 2),
            avg_waiting_time=round(avg_waiting, 2),
            std_weighted_turnaround=round(std_wta, 2),
        )


def write_summary(path: str, summary: Summary) -> bool:
    """Persist *summary* to *path*. A failure is logged, not raised."""
    try:
        with open(path, "w") as fh:
            fh.write("\n".join(summary.lines()) + "\n")
    except OSError as exc:
        logger.error("could not write summary to %s: %s", path, exc)
        return False
    return True
