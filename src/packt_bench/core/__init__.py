"""Problem model, solution evaluation and error taxonomy."""

from .errors import (
    ConfigError,
    FailureKind,
    NonZeroExitError,
    PacktBenchError,
    ParseError,
    ProblemParseError,
    SolverFailure,
    SolverIOError,
    SolverTimeoutError,
)
from .evaluator import evaluate, parse_placements, score
from .models import BoundingBox, Evaluation, Placement, Problem, Rectangle, Variant
from .problem import format_problem, parse_problem

__all__ = [
    # Models
    "BoundingBox",
    "Evaluation",
    "Placement",
    "Problem",
    "Rectangle",
    "Variant",
    # Problem text
    "format_problem",
    "parse_problem",
    # Evaluation
    "evaluate",
    "parse_placements",
    "score",
    # Errors
    "ConfigError",
    "FailureKind",
    "NonZeroExitError",
    "PacktBenchError",
    "ParseError",
    "ProblemParseError",
    "SolverFailure",
    "SolverIOError",
    "SolverTimeoutError",
]
