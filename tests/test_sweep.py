"""Integration tests for the parameter sweep."""

import csv
import io

import pytest

from packt_bench.config import BenchConfig
from packt_bench.monitoring.records import FIELDNAMES, RecordWriter
from packt_bench.runner.sweep import SweepRunner

# Behaves differently per parameter pair so one sweep exercises every outcome.
MOODY_SOLVER = """
import os, sys, time

retry = int(os.environ["RETRY"])
candidates = int(os.environ["N_HEIGHTS"])
lines = [l for l in sys.stdin.read().splitlines() if l.strip()]

if candidates == 2:
    sys.stderr.write("crashed\\n")
    sys.exit(1)
if candidates == 3:
    print("placement of rectangles")
    print("garbage")
    sys.exit(0)
if candidates == 4 and retry == 2:
    time.sleep(100)

print("placement of rectangles")
x = 0
for line in lines[3:]:
    w, h = (int(t) for t in line.split())
    if retry == 2:
        print(f"no 0 0")
    else:
        print(f"no {x} 0")
    x += w
"""


@pytest.fixture
def small_config():
    return BenchConfig(
        deadline_seconds=2,
        kill_grace_seconds=2,
        retry_values=[1, 2],
        candidate_values=[1, 2, 3, 4],
        notify=False,
    )


def test_parameter_grid_is_retry_major():
    runner = SweepRunner("solver", send_telegram_updates=False)
    pairs = [(p.retry, p.n_candidates) for p in runner.parameter_grid()]
    assert len(pairs) == 10
    assert pairs[:5] == [(5, 5), (5, 10), (5, 25), (5, 50), (5, 100)]
    assert pairs[5:] == [(10, 5), (10, 10), (10, 25), (10, 50), (10, 100)]


def test_notify_follows_config_unless_overridden():
    assert SweepRunner("s", BenchConfig(notify=False)).send_telegram_updates is False
    assert SweepRunner("s", BenchConfig(notify=False), send_telegram_updates=True).send_telegram_updates


@pytest.mark.asyncio
async def test_sweep_writes_one_row_per_pair(make_solver, row_problem, small_config):
    solver = make_solver(MOODY_SOLVER)
    out = io.StringIO()
    runner = SweepRunner(solver, config=small_config, send_telegram_updates=False)

    summary = await runner.run(row_problem, "row.txt", RecordWriter(out))

    rows = list(csv.DictReader(io.StringIO(out.getvalue())))
    assert list(rows[0].keys()) == FIELDNAMES
    assert len(rows) == small_config.grid_size == 8
    assert summary.total_runs == 8

    by_pair = {(int(r["retry"]), int(r["n_candidates"])): r for r in rows}
    for row in rows:
        assert row["filename"] == "row.txt"
        assert row["n"] == "3"
        assert row["variant"] == "free"
        assert row["rotation_allowed"] == "false"
        assert row["perfect_packing"] == "false"

    ok = by_pair[(1, 1)]
    assert ok["error"] == ""
    assert ok["is_valid"] == "true"
    assert ok["container"] == "4x2"
    assert ok["min_area"] == "5"
    assert ok["empty_area"] == "3"
    assert float(ok["filling_rate"]) == pytest.approx(0.625)
    assert ok["duration"].count(".") == 1

    crashed = by_pair[(1, 2)]
    assert "status 1" in crashed["error"]
    assert crashed["is_valid"] == crashed["container"] == crashed["duration"] == ""

    garbage = by_pair[(2, 3)]
    assert "expected 3 placements" in garbage["error"]

    timed_out = by_pair[(2, 4)]
    assert "timed out" in timed_out["error"]
    assert timed_out["filling_rate"] == ""

    stacked = by_pair[(2, 1)]
    assert stacked["error"] == ""
    assert stacked["is_valid"] == "false"

    # crashes at (1, 2) (2, 2), garbage at (1, 3) (2, 3), timeout at (2, 4)
    assert summary.failed_runs == 5
    assert summary.valid_runs == 2
    assert summary.best_filling_rate == pytest.approx(0.625)


@pytest.mark.asyncio
async def test_missing_solver_still_yields_every_row(tmp_path, row_problem, small_config):
    out = io.StringIO()
    runner = SweepRunner(tmp_path / "missing", config=small_config, send_telegram_updates=False)
    summary = await runner.run(row_problem, "row.txt", RecordWriter(out))
    rows = list(csv.DictReader(io.StringIO(out.getvalue())))
    assert len(rows) == 8
    assert all("i/o error" in r["error"] for r in rows)
    assert summary.failed_runs == 8
    assert summary.best_record is None


@pytest.mark.asyncio
async def test_solver_sees_problem_without_source(make_solver, row_problem, small_config, tmp_path):
    from dataclasses import replace

    from packt_bench.core.models import Rectangle

    seen = tmp_path / "seen.txt"
    solver = make_solver(f"""
        import sys
        data = sys.stdin.read()
        open({str(seen)!r}, "w").write(data)
        print("0 0\\n1 0\\n3 0")
    """)
    problem = replace(row_problem, source=Rectangle(4, 2))
    config = small_config.model_copy(update={"retry_values": [1], "candidate_values": [1]})
    out = io.StringIO()

    await SweepRunner(solver, config=config, send_telegram_updates=False).run(
        problem, "p.txt", RecordWriter(out)
    )

    assert "perfect packing" not in seen.read_text()
    row = next(csv.DictReader(io.StringIO(out.getvalue())))
    assert row["perfect_packing"] == "true"
    assert row["min_area"] == "8"
