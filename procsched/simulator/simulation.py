"""Tick-driven scheduler loop.

This module contains no dispatch policy logic. It owns the scheduler's
state (process table, ready queue, CPU, metrics, event log) and drives
arrivals, dispatch, preemption, completion and worker control.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

from procsched.ipc.channel import Channel, MessageType
from procsched.metrics.event_log import EventLog
from procsched.metrics.performance import MetricsAccumulator, Summary
from procsched.simulator.core import Core
from procsched.simulator.pcb import PCB, ProcessState, ProcessTable
from procsched.simulator.ready_queue import ReadyQueue
from procsched.simulator.scheduler_base import SchedulerBase

logger = logging.getLogger(__name__)


class Workers(Protocol):
    """What the simulation needs from a worker pool."""

    def spawn(self, remaining_time: int) -> int: ...

    def pause(self, pid: int) -> None: ...

    def resume(self, pid: int) -> None: ...

    def terminate(self, pid: int) -> None: ...

    def completed(self, pid: int) -> bool: ...

    def shutdown(self) -> None: ...


class TickSource(Protocol):
    def now(self) -> int: ...


class Simulation:
    """Single-CPU scheduler driven one clock tick at a time.

    Each tick the engine:
      1. Ingests every pending arrival, then the running worker's completion.
      2. Charges the tick to the running process and finishes it at zero.
      3. Asks the policy whether the running process should be preempted.
      4. Dispatches a ready process if the CPU is idle.
      5. Checks for the end-of-stream marker.
      6. Adds a tick of waiting time to every READY process.

    All selection decisions are delegated to the provided SchedulerBase
    implementation.

    Args:
        scheduler: The dispatch policy to use.
        channel: Where arrival and end-of-stream messages come from.
        workers: Spawns and signals the worker processes.
        event_log: Receives one record per state transition.
    """

    def __init__(
        self,
        scheduler: SchedulerBase,
        channel: Channel,
        workers: Workers,
        event_log: Optional[EventLog] = None,
    ) -> None:
        self._scheduler: SchedulerBase = scheduler
        self._channel: Channel = channel
        self._workers: Workers = workers
        self.event_log: EventLog = event_log if event_log is not None else EventLog()
        self.table: ProcessTable = ProcessTable()
        self.ready: ReadyQueue = ReadyQueue()
        self.core: Core = Core()
        self.metrics: MetricsAccumulator = MetricsAccumulator()
        self.current_time: int = 0
        self.end_of_stream: bool = False
        logger.info("Scheduling with the %s policy", scheduler.name)

    @property
    def running(self) -> Optional[PCB]:
        if self.core.current_task is None:
            return None
        return self.table[self.core.current_task]

    def step(self, now: int) -> None:
        """Run every phase of tick *now* once, in order."""
        self.current_time = now

        # 1. Ingest arrivals and the running worker's completion.
        self.drain_arrivals()
        self._receive_completion()

        # 2. Account the elapsed tick; finish at zero.
        self._account_running()

        # 3. Preemption check.
        self._check_preemption()

        # 4. Dispatch onto an idle CPU.
        if self.core.is_idle() and not self.ready.is_empty():
            self._dispatch()

        # 5. End-of-stream marker.
        self._check_end_of_stream()

        # 6. Waiting time for everything still READY.
        for handle in self.ready:
            pcb = self.table[handle]
            if pcb.state is ProcessState.READY:
                pcb.waiting_time += 1

    def drain_arrivals(self) -> int:
        """Create a READY PCB for every pending arrival. Returns how many."""
        received = 0
        while True:
            message = self._channel.receive(MessageType.ARRIVAL)
            if message is None:
                return received
            try:
                pcb = PCB.from_descriptor(message.to_descriptor())
            except ValueError as exc:
                logger.warning("dropping malformed arrival %r: %s", message, exc)
                continue
            handle = self.table.add(pcb)
            self.ready.enqueue(handle)
            received += 1
            logger.info("Received process %d at time %d", pcb.process_id, self.current_time)

    def done(self) -> bool:
        """True once every process has arrived and none is left to run."""
        return (
            self.end_of_stream
            and self.ready.is_empty()
            and self.core.is_idle()
            and not self._channel.has_pending(MessageType.ARRIVAL)
        )

    def run(self, clock: TickSource, poll_interval: float = 0.01) -> Summary:
        """Step through clock ticks until done() and return the summary.

        Every tick is stepped exactly once; if the clock moved on by more
        than one tick between polls, the missed ticks are stepped in order.
        """
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")

        last_tick = clock.now() - 1
        while True:
            now = clock.now()
            while last_tick < now and not self.done():
                last_tick += 1
                self.step(last_tick)
            if self.done():
                break
            time.sleep(poll_interval)

        logger.info("All processes completed at time %d", self.current_time)
        return self.summary()

    def summary(self) -> Summary:
        return self.metrics.summary(self.current_time)

    def close(self) -> None:
        """Kill any worker still alive and close the event log."""
        self._workers.shutdown()
        self.event_log.close()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _receive_completion(self) -> None:
        pcb = self.running
        if pcb is None or pcb.pid is None:
            return
        if self._workers.completed(pcb.pid):
            logger.debug("worker %d reported completion of process %d", pcb.pid, pcb.process_id)
            pcb.exhaust()

    def _account_running(self) -> None:
        pcb = self.running
        if pcb is None:
            return
        pcb.consume_tick()
        if pcb.is_complete():
            self._finish()

    def _check_preemption(self) -> None:
        if self.core.is_idle():
            return
        ticks = self.core.tick()
        pcb = self.running
        assert pcb is not None
        if self._scheduler.check_preemption(pcb, ticks):
            self._stop()

    def _dispatch(self) -> None:
        handle = self._scheduler.get_next_task(self.ready, self.table)
        if handle is None:
            return
        pcb = self.table[handle]

        if not pcb.started:
            try:
                pid = self._workers.spawn(pcb.remaining_time)
            except OSError as exc:
                logger.error(
                    "could not start process %d at time %d: %s",
                    pcb.process_id, self.current_time, exc,
                )
                return
            pcb.pid = pid
            pcb.started = True
            pcb.start_time = self.current_time
            label = "started"
        else:
            assert pcb.pid is not None
            self._workers.resume(pcb.pid)
            label = "resumed"

        self.ready.remove(handle)
        self.core.assign_task(handle)
        pcb.state = ProcessState.RUNNING
        self.event_log.write(self.current_time, label, pcb)
        logger.info(
            "%s process %d (pid %s) at time %d",
            label.capitalize(), pcb.process_id, pcb.pid, self.current_time,
        )

    def _stop(self) -> None:
        handle = self.core.release()
        assert handle is not None
        pcb = self.table[handle]
        assert pcb.pid is not None
        self._workers.pause(pcb.pid)
        pcb.state = ProcessState.READY
        pcb.last_stop_time = self.current_time
        self.ready.enqueue(handle)
        self.event_log.write(self.current_time, "stopped", pcb)
        logger.info("Stopped process %d at time %d", pcb.process_id, self.current_time)

    def _finish(self) -> None:
        handle = self.core.release()
        assert handle is not None
        pcb = self.table[handle]
        pcb.state = ProcessState.FINISHED
        pcb.finish_time = self.current_time
        self.metrics.record(pcb)
        self.event_log.write(self.current_time, "finished", pcb)
        logger.info(
            "Finished process %d at time %d (TA=%d, WTA=%.2f)",
            pcb.process_id, self.current_time,
            pcb.turnaround_time, pcb.weighted_turnaround,
        )
        if pcb.pid is not None:
            self._workers.terminate(pcb.pid)

    def _check_end_of_stream(self) -> None:
        if self.end_of_stream:
            return
        if self._channel.receive(MessageType.END) is not None:
            self.end_of_stream = True
            logger.info("All processes have arrived (time %d)", self.current_time)
