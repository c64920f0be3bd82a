"""Run records and CSV export for solver benchmark sweeps.

Provides the per-run record emitted for every parameter pair, a CSV writer
for streaming those records, and an aggregate summary of a whole sweep.
"""

from __future__ import annotations

import csv
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, TextIO

from packt_bench.core.models import Evaluation, Problem

FIELDNAMES = [
    "filename",
    "retry",
    "n_candidates",
    "n",
    "variant",
    "rotation_allowed",
    "perfect_packing",
    "error",
    "is_valid",
    "container",
    "min_area",
    "empty_area",
    "filling_rate",
    "duration",
]


def format_duration(seconds: float) -> str:
    """Render seconds as ``"<seconds>.<milliseconds>"``.

    Example:
        >>> format_duration(12.3456)
        '12.345'
        >>> format_duration(0.05)
        '0.050'
    """
    millis = int(seconds * 1000)
    return f"{millis // 1000}.{millis % 1000:03d}"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class RunRecord:
    """Outcome of one solver run for one (retry, n_candidates) pair.

    Attributes:
        filename: Problem file name ("" when read from stdin).
        retry: Retry budget passed to the solver.
        n_candidates: Candidate-count budget passed to the solver.
        n: Number of rectangles in the problem.
        variant: Packing variant ("free" or "fixed H").
        rotation_allowed: Whether the problem allows rotation.
        perfect_packing: Whether the problem carries a known source container.
        error: Failure message; set iff the run failed at any stage.
        is_valid .. duration: Evaluation metrics; set iff error is None.
    """

    filename: str
    retry: int
    n_candidates: int
    n: int
    variant: str
    rotation_allowed: bool
    perfect_packing: bool
    error: Optional[str] = None
    is_valid: Optional[bool] = None
    container: Optional[str] = None
    min_area: Optional[int] = None
    empty_area: Optional[int] = None
    filling_rate: Optional[float] = None
    duration: Optional[str] = None

    @classmethod
    def from_outcome(
        cls,
        problem: Problem,
        filename: str,
        retry: int,
        n_candidates: int,
        evaluation: Optional[Evaluation] = None,
        error: Optional[BaseException] = None,
    ) -> RunRecord:
        """Build a record from either an evaluation or the error that prevented one."""
        record = cls(
            filename=filename,
            retry=retry,
            n_candidates=n_candidates,
            n=problem.n,
            variant=str(problem.variant),
            rotation_allowed=problem.allow_rotation,
            perfect_packing=problem.is_perfect_packing,
        )
        if error is not None or evaluation is None:
            record.error = str(error) if error is not None else "no evaluation"
            return record

        record.is_valid = evaluation.is_valid
        record.container = str(evaluation.bounding_box)
        record.min_area = evaluation.min_area
        record.empty_area = evaluation.empty_area
        record.filling_rate = evaluation.filling_rate
        record.duration = format_duration(evaluation.duration)
        return record

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_row(self) -> dict[str, str]:
        """Render every field as a CSV cell."""
        return {name: _cell(value) for name, value in self.to_dict().items()}


class RecordWriter:
    """Streams RunRecords as CSV rows, flushing after each one."""

    def __init__(self, stream: TextIO, write_header: bool = True):
        self._stream = stream
        self._writer = csv.DictWriter(stream, fieldnames=FIELDNAMES, lineterminator="\n")
        self._header_pending = write_header
        self.rows_written = 0

    def write(self, record: RunRecord) -> None:
        if self._header_pending:
            self._writer.writeheader()
            self._header_pending = False
        self._writer.writerow(record.to_row())
        self._stream.flush()
        self.rows_written += 1


@dataclass
class SweepSummary:
    """Aggregate results of one parameter sweep.

    Attributes:
        filename: Problem file name.
        total_runs: Records produced.
        failed_runs: Runs that ended with an error.
        valid_runs: Runs whose placement was valid.
        best_filling_rate: Highest filling rate among valid runs.
        mean_filling_rate: Mean filling rate among valid runs.
        runtime_seconds: Wall-clock time of the whole sweep.
        records: All records in sweep order.
    """

    filename: str
    total_runs: int = 0
    failed_runs: int = 0
    valid_runs: int = 0
    best_filling_rate: float = 0.0
    mean_filling_rate: float = 0.0
    runtime_seconds: float = 0.0
    records: list[RunRecord] = field(default_factory=list)
    _started: float = field(default_factory=time.monotonic, repr=False)

    def add(self, record: RunRecord) -> None:
        """Add a run's record to the summary.

        Example:
            >>> s = SweepSummary("p.txt")
            >>> s.add(RunRecord("p.txt", 5, 5, 3, "free", False, False, error="boom"))
            >>> (s.total_runs, s.failed_runs)
            (1, 1)
        """
        self.records.append(record)
        self.total_runs += 1
        if record.failed:
            self.failed_runs += 1
        elif record.is_valid:
            self.valid_runs += 1
        self._recalculate_stats()

    def mark_complete(self) -> None:
        self.runtime_seconds = time.monotonic() - self._started

    def _recalculate_stats(self) -> None:
        rates = [
            r.filling_rate
            for r in self.records
            if r.is_valid and r.filling_rate is not None
        ]
        if not rates:
            return
        self.best_filling_rate = max(rates)
        self.mean_filling_rate = sum(rates) / len(rates)

    @property
    def best_record(self) -> Optional[RunRecord]:
        """Valid record with the highest filling rate, if any."""
        valid = [r for r in self.records if r.is_valid and r.filling_rate is not None]
        if not valid:
            return None
        return max(valid, key=lambda r: r.filling_rate)


def format_summary(summary: SweepSummary) -> str:
    """Generate a human-readable summary of a sweep."""
    lines = [
        "=" * 60,
        f"Problem: {summary.filename or '<stdin>'}",
        "=" * 60,
        f"Runs:    {summary.total_runs}",
        f"Failed:  {summary.failed_runs}",
        f"Valid:   {summary.valid_runs}",
        "",
        "Filling Rate (valid runs):",
        f"  Best: {summary.best_filling_rate:.4f}",
        f"  Mean: {summary.mean_filling_rate:.4f}",
    ]
    best = summary.best_record
    if best is not None:
        lines.append(
            f"  Best at RETRY={best.retry}, N_HEIGHTS={best.n_candidates} "
            f"(container {best.container})"
        )
    lines += [
        "",
        f"Runtime: {summary.runtime_seconds:.1f} seconds",
        "=" * 60,
    ]
    return "\n".join(lines)
