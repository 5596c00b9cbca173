"""Workload files, random workload generation, and the arrival emitter."""

from __future__ import annotations

import logging
import random
import re
import time
from typing import Iterable, List, Protocol

from procsched.ipc.channel import Channel, Message
from procsched.simulator.pcb import WorkloadDescriptor

logger = logging.getLogger(__name__)

WORKLOAD_HEADER = "#id\tarrival\truntime\tpriority"


class TickSource(Protocol):
    def now(self) -> int: ...


def read_workload(path: str) -> List[WorkloadDescriptor]:
    """Parse a workload file into descriptors sorted by arrival time.

    Each line holds ``id arrival runtime priority`` separated by tabs or
    spaces. Blank lines and lines starting with ``#`` are ignored; lines
    that do not parse are skipped with a warning.

    Raises:
        OSError: If the file cannot be read.
    """
    descriptors: List[WorkloadDescriptor] = []
    with open(path, "r") as fh:
        for lineno, raw in enumerate(fh, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = re.split(r"\s+", line)
            try:
                if len(parts) != 4:
                    raise ValueError(f"expected 4 fields, got {len(parts)}")
                process_id, arrival, runtime, priority = (int(p) for p in parts)
                descriptors.append(
                    WorkloadDescriptor(
                        process_id=process_id,
                        arrival_time=arrival,
                        runtime=runtime,
                        priority=priority,
                    )
                )
            except ValueError as exc:
                logger.warning("%s:%d: skipping %r (%s)", path, lineno, line, exc)

    # Stable sort keeps file order among equal arrivals.
    descriptors.sort(key=lambda d: d.arrival_time)
    return descriptors


def write_workload(path: str, descriptors: Iterable[WorkloadDescriptor]) -> None:
    with open(path, "w") as fh:
        fh.write(WORKLOAD_HEADER + "\n")
        for d in descriptors:
            fh.write(f"{d.process_id}\t{d.arrival_time}\t{d.runtime}\t{d.priority}\n")


def generate_workload(
    num_tasks: int,
    seed: int = 42,
    arrival_time_range: tuple[int, int] = (0, 20),
    burst_time_range: tuple[int, int] = (1, 10),
    priority_range: tuple[int, int] = (0, 10),
) -> List[WorkloadDescriptor]:
    """Generate a reproducible list of workload entries with random parameters.

    Uses a local Random instance seeded with *seed* so that results are
    fully deterministic regardless of external random state.

    Args:
        num_tasks: Number of entries to generate.
        seed: RNG seed for reproducibility.
        arrival_time_range: Inclusive (min, max) range for arrival ticks.
        burst_time_range: Inclusive (min, max) range for runtimes.
        priority_range: Inclusive (min, max) range for priorities.

    Returns:
        Descriptors with ids 1..num_tasks, sorted by arrival_time.
    """
    if num_tasks <= 0:
        raise ValueError(f"num_tasks must be positive, got {num_tasks}")
    rng = random.Random(seed)
    descriptors: List[WorkloadDescriptor] = []

    for i in range(1, num_tasks + 1):
        arrival = rng.randint(*arrival_time_range)
        burst = rng.randint(*burst_time_range)
        priority = rng.randint(*priority_range)
        descriptors.append(
            WorkloadDescriptor(
                process_id=i, arrival_time=arrival, runtime=burst, priority=priority
            )
        )

    descriptors.sort(key=lambda d: (d.arrival_time, d.process_id))
    return descriptors


def emit_arrivals(
    descriptors: List[WorkloadDescriptor],
    clock: TickSource,
    channel: Channel,
    poll_interval: float = 0.01,
) -> int:
    """Send each entry once the clock reaches its arrival tick, then END.

    *descriptors* must be sorted by arrival time. Returns the number of
    arrival messages sent.
    """
    cursor = 0
    total = len(descriptors)
    while cursor < total:
        now = clock.now()
        while cursor < total and descriptors[cursor].arrival_time <= now:
            entry = descriptors[cursor]
            channel.send(Message.arrival(entry))
            logger.info("Sent process %d to scheduler at time %d", entry.process_id, now)
            cursor += 1
        if cursor < total:
            time.sleep(poll_interval)

    channel.send(Message.end())
    logger.info("Sent end-of-stream to scheduler")
    return cursor
