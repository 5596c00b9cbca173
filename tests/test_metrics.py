import io
import logging

import pytest

from procsched.metrics.event_log import LOG_HEADER, EventLog, parse_record, read_event_log
from procsched.metrics.performance import MetricsAccumulator, Summary, write_summary
from procsched.simulator.pcb import PCB, ProcessState


def finished_pcb(process_id, arrival, runtime, finish, waiting):
    pcb = PCB(process_id, arrival_time=arrival, runtime=runtime)
    pcb.state = ProcessState.FINISHED
    pcb.remaining_time = 0
    pcb.execution_time = runtime
    pcb.finish_time = finish
    pcb.waiting_time = waiting
    return pcb


def test_empty_accumulator_reports_zeros():
    assert MetricsAccumulator().summary(total_time=42) == Summary(0.0, 0.0, 0.0, 0.0)


def test_single_uncontended_process():
    acc = MetricsAccumulator()
    acc.record(finished_pcb(1, arrival=0, runtime=5, finish=5, waiting=0))
    summary = acc.summary(total_time=5)
    assert summary.cpu_utilization == 100.00
    assert summary.avg_weighted_turnaround == 1.00
    assert summary.avg_waiting_time == 0.00
    assert summary.std_weighted_turnaround == 0.00


def test_population_standard_deviation():
    pcbs = [
        finished_pcb(1, arrival=0, runtime=2, finish=2, waiting=0),  # WTA 1
        finished_pcb(2, arrival=0, runtime=2, finish=6, waiting=4),  # WTA 3
    ]
    acc = MetricsAccumulator()
    for pcb in pcbs:
        acc.record(pcb)
    summary = acc.summary(total_time=8)

    assert summary.avg_weighted_turnaround == 2.00
    assert summary.std_weighted_turnaround == 1.00
    assert summary.avg_waiting_time == 2.00
    assert summary.cpu_utilization == 50.00


def test_values_are_rounded_to_two_decimals():
    acc = MetricsAccumulator()
    acc.record(finished_pcb(1, arrival=0, runtime=3, finish=4, waiting=1))
    summary = acc.summary(total_time=3)
    assert summary.avg_weighted_turnaround == 1.33
    assert summary.cpu_utilization == 100.00


def test_record_rejects_unfinished_process():
    with pytest.raises(ValueError):
        MetricsAccumulator().record(PCB(1, 0, 3))


def test_summary_file_format(tmp_path):
    path = tmp_path / "scheduler.perf"
    assert write_summary(str(path), Summary(87.5, 1.333, 2.0, 0.25))
    assert path.read_text().splitlines() == [
        "CPU utilization = 87.50%",
        "Avg WTA = 1.33",
        "Avg Waiting = 2.00",
        "Std WTA = 0.25",
    ]


def test_summary_write_failure_is_not_fatal(tmp_path, caplog):
    missing_dir = tmp_path / "nope" / "scheduler.perf"
    with caplog.at_level(logging.ERROR):
        assert write_summary(str(missing_dir), Summary(0, 0, 0, 0)) is False
    assert "could not write summary" in caplog.text


def test_event_log_lines():
    stream = io.StringIO()
    log = EventLog(stream)
    pcb = PCB(3, arrival_time=1, runtime=4)
    pcb.state = ProcessState.RUNNING
    log.write(2, "started", pcb)
    done = finished_pcb(3, arrival=1, runtime=4, finish=9, waiting=4)
    log.write(9, "finished", done)

    assert stream.getvalue().splitlines() == [
        LOG_HEADER,
        "At time 2 process 3 started arr 1 total 4 remain 4 wait 0",
        "At time 9 process 3 finished arr 1 total 4 remain 0 wait 4 TA 8 WTA 2.00",
    ]
    assert [r.state for r in log.finished()] == ["finished"]


def test_event_log_round_trips_through_file(tmp_path):
    path = tmp_path / "scheduler.log"
    log = EventLog.open(str(path))
    log.write(0, "started", PCB(1, 0, 2))
    log.write(2, "finished", finished_pcb(1, 0, 2, 2, 0))
    log.close()

    records = read_event_log(str(path))
    assert records == log.records


def test_parse_record_ignores_header():
    assert parse_record(LOG_HEADER) is None
    record = parse_record("At time 7 process 2 stopped arr 0 total 5 remain 3 wait 2")
    assert record.state == "stopped"
    assert record.turnaround_time is None


def test_event_log_open_fails_for_missing_directory(tmp_path):
    with pytest.raises(OSError):
        EventLog.open(str(tmp_path / "missing" / "scheduler.log"))
