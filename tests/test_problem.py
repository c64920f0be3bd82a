"""Tests for problem text parsing and serialization."""

import pytest

from packt_bench.core.errors import ProblemParseError
from packt_bench.core.models import Rectangle, Variant
from packt_bench.core.problem import format_problem, parse_problem

FIXED_TEXT = """\
container height: fixed 22
rotations allowed: yes
number of rectangles: 3
12 8
10 9
3 4
"""


def test_parse_fixed_height_problem():
    problem = parse_problem(FIXED_TEXT)
    assert problem.variant == Variant.fixed(22)
    assert problem.allow_rotation is True
    assert problem.rectangles == (Rectangle(12, 8), Rectangle(10, 9), Rectangle(3, 4))
    assert problem.source is None
    assert problem.n == 3
    assert problem.total_area == 96 + 90 + 12


def test_parse_free_problem_with_perfect_packing():
    text = (
        "Container height: FREE\n"
        "\n"
        "rotations allowed: no\n"
        "number of rectangles: 2\n"
        "2 2\n"
        "2 3\n"
        "perfect packing: 4x3\n"
    )
    problem = parse_problem(text)
    assert problem.variant == Variant.free()
    assert not problem.variant.is_fixed
    assert problem.allow_rotation is False
    assert problem.source == Rectangle(4, 3)
    assert problem.is_perfect_packing


def test_zero_rectangles():
    problem = parse_problem("container height: free\nrotations allowed: no\nnumber of rectangles: 0\n")
    assert problem.n == 0
    assert problem.total_area == 0


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "truncated"),
        ("container height: free\nrotations allowed: no\n", "truncated"),
        ("height: free\nrotations allowed: no\nnumber of rectangles: 0\n", "container height"),
        ("container height: sometimes\nrotations allowed: no\nnumber of rectangles: 0\n", "unknown container height"),
        ("container height: fixed -3\nrotations allowed: no\nnumber of rectangles: 0\n", "must not be negative"),
        ("container height: free\nrotations allowed: maybe\nnumber of rectangles: 0\n", "'yes' or 'no'"),
        ("container height: free\nrotations allowed: no\nnumber of rectangles: two\n", "not an integer"),
        ("container height: free\nrotations allowed: no\nnumber of rectangles: 2\n1 1\n", "expected 2 rectangles"),
        ("container height: free\nrotations allowed: no\nnumber of rectangles: 1\n1 1\n2 2\n", "expected 1 rectangles"),
        ("container height: free\nrotations allowed: no\nnumber of rectangles: 1\n1\n", "<width> <height>"),
        ("container height: free\nrotations allowed: no\nnumber of rectangles: 1\n1 -1\n", "must not be negative"),
        ("container height: free\nrotations allowed: no\nnumber of rectangles: 1\n1 99999999999\n", "too large"),
    ],
)
def test_malformed_problem_raises(text, message):
    with pytest.raises(ProblemParseError, match=message):
        parse_problem(text)


def test_format_round_trips_header_and_rectangles():
    problem = parse_problem(FIXED_TEXT)
    assert format_problem(problem) == FIXED_TEXT
    assert parse_problem(format_problem(problem)) == problem


def test_format_withholds_source_by_default():
    problem = parse_problem(FIXED_TEXT + "perfect packing: 25x22\n")
    assert "perfect packing" not in format_problem(problem)
    assert format_problem(problem, include_source=True).endswith("perfect packing: 25x22\n")
