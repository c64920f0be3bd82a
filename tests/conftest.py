"""Shared fixtures for packt-bench tests."""

import os
import sys
import textwrap

import pytest

# Allow running the suite from a plain checkout without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from packt_bench.core.models import Problem, Rectangle, Variant


# Reads a problem from stdin and lays every rectangle out left to right on
# one row, unrotated, under the packt output convention.
ROW_SOLVER = """
import sys

lines = [l.strip() for l in sys.stdin.read().splitlines() if l.strip()]
sys.stdout.write("\\n".join(lines) + "\\n")
print("placement of rectangles")
x = 0
for line in lines[3:]:
    w, h = (int(t) for t in line.split())
    print(f"no {x} 0")
    x += w
"""


@pytest.fixture
def make_solver(tmp_path):
    """Write a Python solver script and return its path."""

    def _make(body: str, name: str = "solver.py"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(body))
        return path

    return _make


@pytest.fixture
def row_solver(make_solver):
    return make_solver(ROW_SOLVER, name="row_solver.py")


@pytest.fixture
def row_problem():
    """1×1, 2×1 and 1×2 rectangles; free height, no rotation."""
    return Problem(
        variant=Variant.free(),
        allow_rotation=False,
        rectangles=(Rectangle(1, 1), Rectangle(2, 1), Rectangle(1, 2)),
    )


@pytest.fixture
def rotation_problem():
    """Fixed height 2 with rotation allowed."""
    return Problem(
        variant=Variant.fixed(2),
        allow_rotation=True,
        rectangles=(Rectangle(2, 1), Rectangle(1, 2), Rectangle(2, 2)),
    )
