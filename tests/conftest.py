import queue

import pytest

from procsched.ipc.channel import Channel, Message
from procsched.simulator.pcb import WorkloadDescriptor


class FakeWorkers:
    """Records control calls instead of touching real processes."""

    def __init__(self, fail_spawns=0):
        self.fail_spawns = fail_spawns
        self.calls = []
        self.finished_pids = set()
        self.alive = set()
        self._next_pid = 1000

    def spawn(self, remaining_time):
        if self.fail_spawns > 0:
            self.fail_spawns -= 1
            self.calls.append(("spawn-failed", remaining_time))
            raise OSError("fork failed")
        self._next_pid += 1
        self.alive.add(self._next_pid)
        self.calls.append(("spawn", self._next_pid, remaining_time))
        return self._next_pid

    def pause(self, pid):
        self.calls.append(("pause", pid))

    def resume(self, pid):
        self.calls.append(("resume", pid))

    def terminate(self, pid):
        self.alive.discard(pid)
        self.calls.append(("terminate", pid))

    def completed(self, pid):
        if pid in self.finished_pids:
            self.finished_pids.discard(pid)
            return True
        return False

    def shutdown(self):
        for pid in list(self.alive):
            self.terminate(pid)

    def of_kind(self, kind):
        return [c for c in self.calls if c[0] == kind]


class ManualClock:
    def __init__(self, start=0):
        self.value = start

    def now(self):
        return self.value


@pytest.fixture
def channel():
    return Channel(queue.Queue())


@pytest.fixture
def workers():
    return FakeWorkers()


def send_arrivals(channel, *entries):
    """entries: (id, arrival, runtime, priority) tuples."""
    for process_id, arrival, runtime, priority in entries:
        channel.send(
            Message.arrival(
                WorkloadDescriptor(
                    process_id=process_id,
                    arrival_time=arrival,
                    runtime=runtime,
                    priority=priority,
                )
            )
        )
