"""Parameter sweep runner for benchmarking an external solver."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from pathlib import Path

from packt_bench.config import BenchConfig
from packt_bench.core.errors import ParseError, SolverFailure
from packt_bench.core.evaluator import evaluate_output
from packt_bench.core.models import Problem
from packt_bench.core.problem import format_problem
from packt_bench.monitoring.records import (
    RecordWriter,
    RunRecord,
    SweepSummary,
    format_summary,
)
from packt_bench.monitoring.telegram_notifier import (
    format_run_result,
    format_sweep_start,
    format_sweep_summary,
    send_telegram,
)
from packt_bench.runner.supervisor import SolverParameters, solve

logger = logging.getLogger(__name__)


class SweepRunner:
    """
    Runs one problem through a solver across the configured parameter grid.

    Runs are strictly sequential so that at most one solver is alive and
    timings are not contaminated by co-running solvers. Every pair yields
    exactly one record; per-run failures are recorded, never raised.
    """

    def __init__(
        self,
        solver: Path | str,
        config: BenchConfig | None = None,
        send_telegram_updates: bool | None = None,
    ):
        """
        Initialize sweep runner.

        Args:
            solver: Path to the solver executable, jar or script
            config: Benchmark configuration (default: BenchConfig())
            send_telegram_updates: Override config.notify
        """
        self.solver = Path(solver)
        self.config = config or BenchConfig()
        if send_telegram_updates is None:
            send_telegram_updates = self.config.notify
        self.send_telegram_updates = send_telegram_updates

    def parameter_grid(self) -> Iterator[SolverParameters]:
        """Yield every (retry, n_candidates) pair, retry-major."""
        for retry, candidates in itertools.product(
            self.config.retry_values, self.config.candidate_values
        ):
            yield SolverParameters(retry=retry, n_candidates=candidates)

    async def run(
        self,
        problem: Problem,
        filename: str,
        writer: RecordWriter,
    ) -> SweepSummary:
        """
        Run the full sweep and stream one record per parameter pair.

        Args:
            problem: Parsed problem, shared read-only by every run
            filename: Problem file name for the records
            writer: Destination for records

        Returns:
            SweepSummary over all runs
        """
        summary = SweepSummary(filename=filename)
        problem_text = format_problem(problem)

        if self.send_telegram_updates:
            await send_telegram(
                format_sweep_start(
                    filename=filename,
                    n=problem.n,
                    variant=str(problem.variant),
                    rotation_allowed=problem.allow_rotation,
                    total_runs=self.config.grid_size,
                    deadline_seconds=self.config.deadline_seconds,
                )
            )

        for parameters in self.parameter_grid():
            logger.info(
                "problem: %s, %s = %d, %s = %d",
                filename,
                self.config.retry_env,
                parameters.retry,
                self.config.candidates_env,
                parameters.n_candidates,
            )
            record = await self.run_one(problem, problem_text, filename, parameters)
            writer.write(record)
            summary.add(record)

            if self.send_telegram_updates:
                await send_telegram(format_run_result(record))

        summary.mark_complete()
        logger.info("\n%s", format_summary(summary))

        if self.send_telegram_updates:
            await send_telegram(format_sweep_summary(summary))

        return summary

    async def run_one(
        self,
        problem: Problem,
        problem_text: str,
        filename: str,
        parameters: SolverParameters,
    ) -> RunRecord:
        """Supervise and evaluate a single run, capturing any per-run failure."""
        try:
            output = await solve(
                self.solver,
                problem_text,
                deadline=self.config.deadline_seconds,
                parameters=parameters,
                env_names=(self.config.retry_env, self.config.candidates_env),
                kill_grace=self.config.kill_grace_seconds,
                stderr_excerpt_chars=self.config.stderr_excerpt_chars,
            )
            evaluation = evaluate_output(problem, output)
        except (SolverFailure, ParseError) as e:
            logger.warning("Run failed: %s", e)
            return RunRecord.from_outcome(
                problem, filename, parameters.retry, parameters.n_candidates, error=e
            )

        if not evaluation.is_valid:
            logger.warning("Invalid placement: %s", "; ".join(evaluation.violations))
        return RunRecord.from_outcome(
            problem,
            filename,
            parameters.retry,
            parameters.n_candidates,
            evaluation=evaluation,
        )
