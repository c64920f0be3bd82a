"""Tests for run records, CSV rendering and sweep summaries."""

import io

import pytest

from packt_bench.core.errors import SolverTimeoutError
from packt_bench.core.evaluator import evaluate
from packt_bench.monitoring.records import (
    FIELDNAMES,
    RecordWriter,
    RunRecord,
    SweepSummary,
    format_duration,
    format_summary,
)


@pytest.mark.parametrize(
    "seconds, expected",
    [(0.0, "0.000"), (0.05, "0.050"), (1.5, "1.500"), (12.3456, "12.345"), (300.0009, "300.000")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_record_from_evaluation(row_problem):
    ev = evaluate(row_problem, "0 0\n1 0\n3 0\n", duration=2.25)
    record = RunRecord.from_outcome(row_problem, "p.txt", 5, 25, evaluation=ev)
    assert not record.failed
    assert record.to_row() == {
        "filename": "p.txt",
        "retry": "5",
        "n_candidates": "25",
        "n": "3",
        "variant": "free",
        "rotation_allowed": "false",
        "perfect_packing": "false",
        "error": "",
        "is_valid": "true",
        "container": "4x2",
        "min_area": "5",
        "empty_area": "3",
        "filling_rate": "0.625",
        "duration": "2.250",
    }


def test_record_from_error_leaves_metrics_empty(rotation_problem):
    record = RunRecord.from_outcome(
        rotation_problem, "p.txt", 10, 100, error=SolverTimeoutError(300)
    )
    row = record.to_row()
    assert record.failed
    assert row["error"] == "solver timed out after 300s"
    assert row["variant"] == "fixed 2"
    assert row["rotation_allowed"] == "true"
    for name in ("is_valid", "container", "min_area", "empty_area", "filling_rate", "duration"):
        assert row[name] == ""


def test_writer_emits_header_once(row_problem):
    out = io.StringIO()
    writer = RecordWriter(out)
    record = RunRecord.from_outcome(row_problem, "p.txt", 5, 5, error=SolverTimeoutError(1))
    writer.write(record)
    writer.write(record)
    lines = out.getvalue().splitlines()
    assert lines[0] == ",".join(FIELDNAMES)
    assert len(lines) == 3
    assert writer.rows_written == 2


def test_writer_without_header(row_problem):
    out = io.StringIO()
    writer = RecordWriter(out, write_header=False)
    writer.write(RunRecord.from_outcome(row_problem, "p.txt", 5, 5, error=SolverTimeoutError(1)))
    assert out.getvalue().startswith("p.txt,5,5,3,")


def test_summary_tracks_valid_runs(row_problem):
    summary = SweepSummary("p.txt")
    good = evaluate(row_problem, "0 0\n1 0\n3 0\n")
    bad = evaluate(row_problem, "0 0\n0 0\n0 0\n")
    summary.add(RunRecord.from_outcome(row_problem, "p.txt", 5, 5, evaluation=good))
    summary.add(RunRecord.from_outcome(row_problem, "p.txt", 5, 10, evaluation=bad))
    summary.add(RunRecord.from_outcome(row_problem, "p.txt", 5, 25, error=SolverTimeoutError(1)))
    summary.mark_complete()

    assert (summary.total_runs, summary.valid_runs, summary.failed_runs) == (3, 1, 1)
    assert summary.best_filling_rate == pytest.approx(0.625)
    assert summary.best_record.n_candidates == 5
    assert summary.runtime_seconds >= 0

    text = format_summary(summary)
    assert "Problem: p.txt" in text
    assert "Best at RETRY=5, N_HEIGHTS=5 (container 4x2)" in text
