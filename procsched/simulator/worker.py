"""Worker processes and the control surface the scheduler drives them with."""

from __future__ import annotations

import logging
import multiprocessing
import os
import signal
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from procsched.ipc.channel import Channel, Message, MessageType
from procsched.ipc.clock import Clock

logger = logging.getLogger(__name__)

WORKER_POLL_INTERVAL = 0.005


class _ResumeFlag:
    __slots__ = ("raised",)

    def __init__(self) -> None:
        self.raised = False


def run_worker(
    clock: Clock,
    channel: Channel,
    remaining_time: int,
    poll_interval: float = WORKER_POLL_INTERVAL,
) -> None:
    """Worker process body.

    Consumes *remaining_time* ticks of the shared clock, then reports
    completion on *channel* and returns. Ticks that pass while the process
    is stopped are not counted: SIGCONT resets the last tick seen.
    """
    if remaining_time <= 0:
        raise ValueError(f"remaining_time must be positive, got {remaining_time}")

    resumed = _ResumeFlag()

    def _on_continue(signum: int, frame: Any) -> None:
        resumed.raised = True

    signal.signal(signal.SIGCONT, _on_continue)
    signal.signal(signal.SIGINT, signal.SIG_IGN)

    last_tick = clock.peek()
    while remaining_time > 0:
        now = clock.peek()
        if resumed.raised:
            resumed.raised = False
            last_tick = now
        elif now > last_tick:
            remaining_time -= now - last_tick
            last_tick = now
        else:
            time.sleep(poll_interval)

    channel.send(Message.completion(os.getpid()))
    channel.close()


@dataclass
class _Worker:
    process: Any
    channel: Channel


class WorkerPool:
    """Spawns one OS process per started PCB and sends it control signals.

    PAUSE, RESUME and TERMINATE map to SIGSTOP, SIGCONT and SIGKILL. Each
    worker gets its own completion channel, so killing a worker mid-send
    can only damage a channel nobody reads again.

    Args:
        clock: The shared clock workers consume.
        ctx: Multiprocessing context used to spawn workers.
        poll_interval: How often a worker re-reads the clock.
    """

    def __init__(
        self,
        clock: Clock,
        ctx: Optional[Any] = None,
        poll_interval: float = WORKER_POLL_INTERVAL,
    ) -> None:
        if not hasattr(signal, "SIGSTOP"):
            raise RuntimeError("worker control needs POSIX job-control signals")
        self._clock = clock
        self._ctx = ctx or multiprocessing.get_context()
        self._poll_interval = poll_interval
        self._workers: Dict[int, _Worker] = {}

    def spawn(self, remaining_time: int) -> int:
        """Start a worker for *remaining_time* ticks and return its pid.

        Raises:
            OSError: If the process could not be created.
        """
        channel = Channel.create(self._ctx)
        process = self._ctx.Process(
            target=run_worker,
            args=(self._clock, channel, remaining_time, self._poll_interval),
            name="procsched-worker",
        )
        try:
            process.start()
        except OSError:
            channel.close()
            raise
        self._workers[process.pid] = _Worker(process, channel)
        return process.pid

    def pause(self, pid: int) -> None:
        self._signal(pid, signal.SIGSTOP)

    def resume(self, pid: int) -> None:
        self._signal(pid, signal.SIGCONT)

    def terminate(self, pid: int) -> None:
        """Kill the worker and reap it."""
        worker = self._workers.pop(pid, None)
        if worker is None:
            return
        worker.process.kill()
        worker.process.join()
        worker.channel.close()
        logger.debug("reaped worker %d (exitcode=%s)", pid, worker.process.exitcode)

    def completed(self, pid: int) -> bool:
        """True once the worker has reported completion."""
        worker = self._workers.get(pid)
        if worker is None:
            return False
        return worker.channel.receive(MessageType.COMPLETION) is not None

    def shutdown(self) -> None:
        for pid in list(self._workers):
            self.terminate(pid)

    def _signal(self, pid: int, signum: int) -> None:
        if pid not in self._workers:
            raise KeyError(f"no live worker with pid {pid}")
        try:
            os.kill(pid, signum)
        except ProcessLookupError:
            logger.warning("worker %d is gone; could not deliver %s", pid, signal.Signals(signum).name)

    def __len__(self) -> int:
        return len(self._workers)
