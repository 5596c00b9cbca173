import os
import re
import signal
import subprocess
import sys

import pytest

from procsched.metrics.event_log import read_event_log

pytestmark = pytest.mark.skipif(
    not hasattr(signal, "SIGSTOP"), reason="needs POSIX job-control signals"
)

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

WORKLOAD = "#id\tarrival\truntime\tpriority\n1\t0\t4\t2\n2\t2\t2\t0\n3\t2\t1\t1\n"


def run_cli(tmp_path, *extra):
    workload = tmp_path / "processes.txt"
    workload.write_text(WORKLOAD)
    log = tmp_path / "scheduler.log"
    perf = tmp_path / "scheduler.perf"
    result = subprocess.run(
        [
            sys.executable, "-m", "procsched.main", "run", str(workload),
            "--tick-seconds", "0.05", "--log", str(log), "--perf", str(perf),
            *extra,
        ],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        timeout=120,
        check=False,
    )
    return result, log, perf


def perf_values(perf):
    values = {}
    for line in perf.read_text().splitlines():
        m = re.match(r"^(.+?) = (-?\d+\.\d\d)%?$", line)
        assert m, f"Malformed summary line: {line}"
        values[m.group(1)] = float(m.group(2))
    return values


@pytest.mark.parametrize("policy", [["--scheduler", "hpf"], ["--scheduler", "srtn"], ["--scheduler", "rr", "--quantum", "1"]])
def test_cli_runs_workload(tmp_path, policy):
    result, log, perf = run_cli(tmp_path, *policy)
    assert result.returncode == 0, f"Return code {result.returncode}, stderr: {result.stderr}"

    records = read_event_log(str(log))
    finished = [r for r in records if r.state == "finished"]
    assert sorted(r.process_id for r in finished) == [1, 2, 3]
    for r in finished:
        assert r.remaining_time == 0
        assert r.turnaround_time >= r.runtime

    values = perf_values(perf)
    assert list(values) == ["CPU utilization", "Avg WTA", "Avg Waiting", "Std WTA"]
    assert 0 < values["CPU utilization"] <= 100
    assert values["Avg WTA"] >= 1.0
    assert "Simulation Results" in result.stdout


def test_cli_priority_order(tmp_path):
    result, log, _ = run_cli(tmp_path, "--scheduler", "1")
    assert result.returncode == 0, result.stderr
    started = [r.process_id for r in read_event_log(str(log)) if r.state == "started"]
    # 1 runs alone first; then the more urgent of the two queued.
    assert started == [1, 2, 3]


def test_cli_rejects_round_robin_without_quantum(tmp_path):
    result, _, _ = run_cli(tmp_path, "--scheduler", "rr")
    assert result.returncode == 2
    assert "quantum" in result.stderr


def test_cli_rejects_unknown_algorithm(tmp_path):
    result, _, _ = run_cli(tmp_path, "--scheduler", "7")
    assert result.returncode == 2


def test_cli_fails_when_log_cannot_be_opened(tmp_path):
    workload = tmp_path / "processes.txt"
    workload.write_text(WORKLOAD)
    result = subprocess.run(
        [
            sys.executable, "-m", "procsched.main", "run", str(workload),
            "--tick-seconds", "0.05",
            "--log", str(tmp_path / "missing" / "scheduler.log"),
            "--perf", str(tmp_path / "scheduler.perf"),
        ],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        timeout=60,
        check=False,
    )
    assert result.returncode != 0


def test_cli_generate(tmp_path):
    out = tmp_path / "generated.txt"
    result = subprocess.run(
        [sys.executable, "-m", "procsched.main", "generate", str(out), "--tasks", "5", "--seed", "1"],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        check=False,
    )
    assert result.returncode == 0, result.stderr
    lines = [ln for ln in out.read_text().splitlines() if not ln.startswith("#")]
    assert len(lines) == 5
