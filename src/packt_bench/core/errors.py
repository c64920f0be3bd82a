"""
Error taxonomy for solver benchmarking.

Fatal errors (abort before the sweep starts):
  ConfigError        : configuration file missing or invalid
  ProblemParseError  : problem text could not be parsed

Per-run errors (captured into the run's record, sweep continues):
  SolverFailure      : the solver process did not complete normally
  ParseError         : the solver's output is not a well-formed placement
"""

from __future__ import annotations

from enum import Enum


class PacktBenchError(Exception):
    """Base class for all packt-bench errors."""


class ConfigError(PacktBenchError):
    """Configuration could not be loaded or failed validation."""


class ProblemParseError(PacktBenchError):
    """Problem text is malformed."""


class ParseError(PacktBenchError):
    """Solver output could not be decoded into a placement list."""


# ─────────────────────────────────────────────────────────────────────────────
# Solver failures
# ─────────────────────────────────────────────────────────────────────────────

class FailureKind(str, Enum):
    NON_ZERO_EXIT = "non-zero exit"
    TIMEOUT = "timeout"
    IO_ERROR = "io error"


class SolverFailure(PacktBenchError):
    """The supervised solver run did not complete with exit status 0."""

    kind: FailureKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonZeroExitError(SolverFailure):
    """Solver exited with a non-zero status."""

    kind = FailureKind.NON_ZERO_EXIT

    def __init__(self, returncode: int, stderr_excerpt: str = ""):
        self.returncode = returncode
        self.stderr_excerpt = stderr_excerpt
        message = f"solver exited with status {returncode}"
        if stderr_excerpt:
            message += f": {stderr_excerpt}"
        super().__init__(message)


class SolverTimeoutError(SolverFailure):
    """Solver did not exit before the deadline and was killed."""

    kind = FailureKind.TIMEOUT

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"solver timed out after {deadline:g}s")


class SolverIOError(SolverFailure):
    """Solver could not be spawned or its pipes failed."""

    kind = FailureKind.IO_ERROR

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"solver i/o error: {detail}")
