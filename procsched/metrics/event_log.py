"""Append-only, line-oriented log of process state transitions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import IO, List, Optional

from procsched.simulator.pcb import PCB

LOG_HEADER = "#At time x process y state arr w total z remain y wait k"


@dataclass(frozen=True)
class EventRecord:
    time: int
    process_id: int
    state: str
    arrival_time: int
    runtime: int
    remaining_time: int
    waiting_time: int
    turnaround_time: Optional[int] = None
    weighted_turnaround: Optional[float] = None

    @classmethod
    def capture(cls, time: int, state: str, pcb: PCB) -> "EventRecord":
        finished = state == "finished"
        return cls(
            time=time,
            process_id=pcb.process_id,
            state=state,
            arrival_time=pcb.arrival_time,
            runtime=pcb.runtime,
            remaining_time=pcb.remaining_time,
            waiting_time=pcb.waiting_time,
            turnaround_time=pcb.turnaround_time if finished else None,
            weighted_turnaround=pcb.weighted_turnaround if finished else None,
        )

    def format(self) -> str:
        line = (
            f"At time {self.time} process {self.process_id} {self.state} "
            f"arr {self.arrival_time} total {self.runtime} "
            f"remain {self.remaining_time} wait {self.waiting_time}"
        )
        if self.turnaround_time is not None and self.weighted_turnaround is not None:
            line += f" TA {self.turnaround_time} WTA {self.weighted_turnaround:.2f}"
        return line


_RECORD_RE = re.compile(
    r"^At time (?P<time>-?\d+) process (?P<pid>-?\d+) (?P<state>\w+) "
    r"arr (?P<arr>-?\d+) total (?P<total>\d+) remain (?P<remain>\d+) wait (?P<wait>\d+)"
    r"(?: TA (?P<ta>-?\d+) WTA (?P<wta>-?[\d.]+))?$"
)


def parse_record(line: str) -> Optional[EventRecord]:
    """Parse one log line back into a record; None for headers and junk."""
    m = _RECORD_RE.match(line.strip())
    if m is None:
        return None
    return EventRecord(
        time=int(m.group("time")),
        process_id=int(m.group("pid")),
        state=m.group("state"),
        arrival_time=int(m.group("arr")),
        runtime=int(m.group("total")),
        remaining_time=int(m.group("remain")),
        waiting_time=int(m.group("wait")),
        turnaround_time=int(m.group("ta")) if m.group("ta") is not None else None,
        weighted_turnaround=float(m.group("wta")) if m.group("wta") is not None else None,
    )


def read_event_log(path: str) -> List[EventRecord]:
    with open(path, "r") as fh:
        return [r for r in (parse_record(line) for line in fh) if r is not None]


class EventLog:
    """Keeps every record in memory and mirrors it to an optional file.

    The file is flushed after each line so the log is complete even if the
    run is killed.
    """

    def __init__(self, stream: Optional[IO[str]] = None) -> None:
        self._stream = stream
        self.records: List[EventRecord] = []
        if self._stream is not None:
            self._stream.write(LOG_HEADER + "\n")
            self._stream.flush()

    @classmethod
    def open(cls, path: str) -> "EventLog":
        """Open *path* for writing. Raises OSError if it cannot be created."""
        return cls(open(path, "w"))

    def write(self, time: int, state: str, pcb: PCB) -> EventRecord:
        record = EventRecord.capture(time, state, pcb)
        self.records.append(record)
        if self._stream is not None:
            self._stream.write(record.format() + "\n")
            self._stream.flush()
        return record

    def finished(self) -> List[EventRecord]:
        return [r for r in self.records if r.state == "finished"]

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
