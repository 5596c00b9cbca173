"""Process orchestration: clock, scheduler process and arrival generator."""

from __future__ import annotations

import logging
import multiprocessing
import signal
import sys
from typing import Any, List, Optional

from procsched.config import SchedulerConfig
from procsched.ipc.channel import Channel
from procsched.ipc.clock import Clock, ClockService
from procsched.metrics.event_log import EventLog
from procsched.metrics.performance import write_summary
from procsched.simulator.pcb import WorkloadDescriptor
from procsched.simulator.simulation import Simulation
from procsched.simulator.worker import WorkerPool
from procsched.workload.generator import emit_arrivals

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(processName)s %(levelname)s %(name)s: %(message)s"

EXIT_INTERRUPTED = 130


def configure_logging(level: int) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _raise_exit(signum: int, frame: Any) -> None:
    raise SystemExit(128 + signum)


def run_scheduler(
    config: SchedulerConfig,
    clock: Clock,
    channel: Channel,
    ready: Any,
    log_level: int = logging.WARNING,
) -> None:
    """Scheduler process body. Exits non-zero if the event log cannot be opened."""
    configure_logging(log_level)
    signal.signal(signal.SIGTERM, _raise_exit)

    try:
        event_log = EventLog.open(config.log_path)
    except OSError as exc:
        logger.error("cannot open event log %s: %s", config.log_path, exc)
        sys.exit(1)

    scheduler = config.make_scheduler()
    logger.info(
        "Scheduler started: algorithm=%s quantum=%d", config.algorithm.name, config.quantum
    )
    simulation = Simulation(
        scheduler=scheduler,
        channel=channel,
        workers=WorkerPool(clock),
        event_log=event_log,
    )
    ready.set()

    try:
        summary = simulation.run(clock, config.poll_interval)
    except KeyboardInterrupt:
        logger.warning("scheduler interrupted at time %d", simulation.current_time)
        sys.exit(EXIT_INTERRUPTED)
    finally:
        simulation.close()

    write_summary(config.perf_path, summary)
    for line in summary.lines():
        logger.info(line)


def launch(
    config: SchedulerConfig,
    descriptors: List[WorkloadDescriptor],
    ctx: Optional[Any] = None,
) -> int:
    """Run a whole simulation and return a process exit code.

    The clock exists before anything else but only starts ticking once the
    scheduler reports it is ready, so tick 0 is seen by every component.
    This process then plays the workload generator until the scheduler
    exits.
    """
    ctx = ctx or multiprocessing.get_context()
    try:
        channel = Channel.create(ctx)
    except OSError as exc:
        logger.error("could not create message channel: %s", exc)
        return 1

    service = ClockService(config.tick_seconds, ctx)
    ready = ctx.Event()
    scheduler = ctx.Process(
        target=run_scheduler,
        args=(config, service.clock, channel, ready, logging.getLogger().getEffectiveLevel()),
        name="procsched-scheduler",
    )

    try:
        scheduler.start()
        while not ready.wait(0.1):
            if not scheduler.is_alive():
                logger.error("scheduler exited during startup (exitcode=%s)", scheduler.exitcode)
                return scheduler.exitcode or 1
        service.start()
        logger.info("Scheduler process created with PID %d", scheduler.pid)

        emit_arrivals(descriptors, service.clock, channel, config.poll_interval)
        scheduler.join()
    except KeyboardInterrupt:
        logger.warning("interrupted; tearing down scheduler and clock")
        if scheduler.pid is not None:
            if scheduler.is_alive():
                scheduler.terminate()
            scheduler.join()
        return EXIT_INTERRUPTED
    finally:
        service.stop()
        channel.close()

    if scheduler.exitcode != 0:
        logger.error("scheduler exited with code %s", scheduler.exitcode)
        return scheduler.exitcode if scheduler.exitcode and scheduler.exitcode > 0 else 1
    return 0
