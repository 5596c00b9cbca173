"""Scheduler launch configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from procsched.simulator.hpf import HPFScheduler
from procsched.simulator.round_robin import RoundRobinScheduler
from procsched.simulator.scheduler_base import SchedulerBase
from procsched.simulator.srtn import SRTNScheduler


class Algorithm(Enum):
    """Dispatch policy selector. Values are the numeric launch codes."""

    HPF = 1
    SRTN = 2
    RR = 3

    @classmethod
    def parse(cls, raw: Union[str, int, "Algorithm"]) -> "Algorithm":
        """Accept a code (``3``/``"3"``) or a name (``"rr"``)."""
        if isinstance(raw, Algorithm):
            return raw
        text = str(raw).strip().lower()
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                pass
        else:
            for algorithm in cls:
                if algorithm.name.lower() == text:
                    return algorithm
        raise ValueError(f"unknown algorithm {raw!r}; expected 1-3 or hpf/srtn/rr")


@dataclass(frozen=True)
class SchedulerConfig:
    """Everything the scheduler needs before its main loop starts.

    Invalid combinations are rejected here, so nothing is spawned for a
    configuration that could never run.
    """

    algorithm: Algorithm = Algorithm.HPF
    quantum: int = 0
    tick_seconds: float = 0.1
    poll_interval: float = 0.01
    log_path: str = "scheduler.log"
    perf_path: str = "scheduler.perf"

    def __post_init__(self) -> None:
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        if self.algorithm is Algorithm.RR and self.quantum <= 0:
            raise ValueError(
                f"round robin needs a positive quantum, got {self.quantum}"
            )
        if self.tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be positive, got {self.tick_seconds}")
        if self.poll_interval <= 0:
            raise ValueError(
                f"poll_interval must be positive, got {self.poll_interval}"
            )

    def make_scheduler(self) -> SchedulerBase:
        """Instantiate the configured dispatch policy."""
        if self.algorithm is Algorithm.RR:
            return RoundRobinScheduler(time_quantum=self.quantum)
        if self.algorithm is Algorithm.SRTN:
            return SRTNScheduler()
        return HPFScheduler()
