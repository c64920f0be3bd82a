"""Solver supervision and parameter sweeps."""

from .supervisor import SolverOutput, SolverParameters, solve, solver_command
from .sweep import SweepRunner

__all__ = ["SolverOutput", "SolverParameters", "SweepRunner", "solve", "solver_command"]
