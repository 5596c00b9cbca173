import logging

from procsched.config import Algorithm, SchedulerConfig
from procsched.launcher import launch
from procsched.simulator.pcb import WorkloadDescriptor


class NoQueueContext:
    """A multiprocessing context that cannot allocate a queue."""

    def __init__(self):
        self.processes = 0

    def Queue(self):
        raise OSError("no space left on device")

    def Process(self, *args, **kwargs):
        self.processes += 1
        raise AssertionError("no process should start without a channel")


def test_launch_fails_when_channel_cannot_be_created(caplog):
    ctx = NoQueueContext()
    config = SchedulerConfig(algorithm=Algorithm.HPF)

    with caplog.at_level(logging.ERROR, logger="procsched.launcher"):
        code = launch(config, [WorkloadDescriptor(1, 0, 2, 0)], ctx=ctx)

    assert code == 1
    assert ctx.processes == 0
    assert "could not create message channel" in caplog.text
