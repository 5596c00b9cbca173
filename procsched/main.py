"""CLI entry point for the process scheduling simulator."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from procsched.config import Algorithm, SchedulerConfig
from procsched.launcher import configure_logging, launch
from procsched.metrics.event_log import EventRecord, read_event_log
from procsched.workload.generator import generate_workload, read_workload, write_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="procsched",
        description="Single-CPU scheduling simulator driving real worker processes",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log transitions (-v) or everything (-vv) to stderr",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a workload file through the scheduler")
    run.add_argument("workload", help="Path to the workload file")
    run.add_argument(
        "--scheduler",
        type=str,
        default="hpf",
        help="Dispatch policy: 1/hpf, 2/srtn or 3/rr (default: hpf)",
    )
    run.add_argument(
        "--quantum",
        type=int,
        default=0,
        help="Time quantum for Round Robin, in ticks (required for rr)",
    )
    run.add_argument(
        "--tick-seconds",
        type=float,
        default=0.1,
        help="Wall-clock length of one tick (default: 0.1)",
    )
    run.add_argument(
        "--poll-interval",
        type=float,
        default=0.01,
        help="Scheduler and generator poll interval in seconds (default: 0.01)",
    )
    run.add_argument("--log", default="scheduler.log", help="Event log path (default: scheduler.log)")
    run.add_argument("--perf", default="scheduler.perf", help="Summary path (default: scheduler.perf)")

    gen = sub.add_parser("generate", help="Write a random workload file")
    gen.add_argument("output", help="Where to write the workload")
    gen.add_argument(
        "--tasks",
        type=int,
        default=10,
        help="Number of processes to generate (default: 10)",
    )
    gen.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for workload generation (default: 42)",
    )
    return parser


def print_results(records: List[EventRecord], algorithm: Algorithm, summary_lines: List[str]) -> None:
    """Print per-process results and summary statistics to stdout."""
    header = f"{'ID':>4}  {'Arrival':>7}  {'Burst':>5}  {'End':>5}  {'Turnaround':>10}  {'WTA':>6}  {'Wait':>5}"
    separator = "-" * len(header)

    print(f"\n=== Simulation Results: {algorithm.name} ===\n")
    print(header)
    print(separator)
    for r in sorted(records, key=lambda r: r.process_id):
        print(
            f"{r.process_id:>4}  {r.arrival_time:>7}  {r.runtime:>5}  {r.time:>5}  "
            f"{r.turnaround_time:>10}  {r.weighted_turnaround:>6.2f}  {r.waiting_time:>5}"
        )
    print(separator)
    for line in summary_lines:
        print(f"  {line}")
    print()


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        config = SchedulerConfig(
            algorithm=Algorithm.parse(args.scheduler),
            quantum=args.quantum,
            tick_seconds=args.tick_seconds,
            poll_interval=args.poll_interval,
            log_path=args.log,
            perf_path=args.perf,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        workload = read_workload(args.workload)
    except OSError as exc:
        print(f"error: cannot read workload {args.workload}: {exc}", file=sys.stderr)
        return 1
    if not workload:
        print(f"error: no processes found in {args.workload}", file=sys.stderr)
        return 1

    code = launch(config, workload)
    if code != 0:
        return code

    try:
        finished = [r for r in read_event_log(config.log_path) if r.state == "finished"]
        with open(config.perf_path, "r") as fh:
            summary_lines = [line.rstrip("\n") for line in fh if line.strip()]
    except OSError as exc:
        logger.warning("could not read back results: %s", exc)
        return 0
    print_results(finished, config.algorithm, summary_lines)
    return 0


def _generate(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        workload = generate_workload(num_tasks=args.tasks, seed=args.seed)
    except ValueError as exc:
        parser.error(str(exc))
    write_workload(args.output, workload)
    print(f"wrote {len(workload)} processes to {args.output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, dispatch the subcommand, return an exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(
        {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    )

    if args.command == "generate":
        return _generate(args, parser)
    return _run(args, parser)


if __name__ == "__main__":
    sys.exit(main())
