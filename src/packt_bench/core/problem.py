"""Problem text format: parsing and serialization.

Example:
    container height: fixed 22
    rotations allowed: yes
    number of rectangles: 3
    12 8
    10 9
    3 4
    perfect packing: 25x22

The trailing ``perfect packing`` line is optional and is never sent to a
solver.
"""

from __future__ import annotations

from typing import Optional

from packt_bench.core.errors import ProblemParseError
from packt_bench.core.models import Problem, Rectangle, Variant

HEIGHT_KEY = "container height"
ROTATION_KEY = "rotations allowed"
COUNT_KEY = "number of rectangles"
SOURCE_KEY = "perfect packing"

MAX_DIMENSION = 2 ** 31


def _split_header(line: str, key: str) -> str:
    name, sep, value = line.partition(":")
    if not sep or name.strip().lower() != key:
        raise ProblemParseError(f"expected '{key}: ...', got {line!r}")
    return value.strip()


def _parse_int(token: str, what: str) -> int:
    try:
        value = int(token)
    except ValueError:
        raise ProblemParseError(f"{what} is not an integer: {token!r}") from None
    if value < 0:
        raise ProblemParseError(f"{what} must not be negative: {value}")
    if value > MAX_DIMENSION:
        raise ProblemParseError(f"{what} is too large: {value}")
    return value


def _parse_variant(value: str) -> Variant:
    tokens = value.lower().split()
    if tokens == ["free"]:
        return Variant.free()
    if len(tokens) == 2 and tokens[0] == "fixed":
        return Variant.fixed(_parse_int(tokens[1], "container height"))
    raise ProblemParseError(f"unknown container height: {value!r}")


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered == "yes":
        return True
    if lowered == "no":
        return False
    raise ProblemParseError(f"expected 'yes' or 'no', got {value!r}")


def _parse_rectangle(line: str) -> Rectangle:
    tokens = line.replace("x", " ").split()
    if len(tokens) != 2:
        raise ProblemParseError(f"expected '<width> <height>', got {line!r}")
    return Rectangle(
        _parse_int(tokens[0], "rectangle width"),
        _parse_int(tokens[1], "rectangle height"),
    )


def parse_problem(text: str) -> Problem:
    """
    Parse problem text.

    Args:
        text: Problem in the packt text format.

    Returns:
        Parsed Problem.

    Raises:
        ProblemParseError: On any deviation from the format.
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 3:
        raise ProblemParseError("problem text is truncated: missing header lines")

    variant = _parse_variant(_split_header(lines[0], HEIGHT_KEY))
    allow_rotation = _parse_bool(_split_header(lines[1], ROTATION_KEY))
    count = _parse_int(_split_header(lines[2], COUNT_KEY), "number of rectangles")

    body = lines[3:]
    source: Optional[Rectangle] = None
    if body and body[-1].lower().startswith(SOURCE_KEY):
        source = _parse_rectangle(_split_header(body[-1], SOURCE_KEY))
        body = body[:-1]

    if len(body) != count:
        raise ProblemParseError(
            f"expected {count} rectangles, found {len(body)} lines"
        )

    rectangles = tuple(_parse_rectangle(line) for line in body)
    return Problem(
        variant=variant,
        allow_rotation=allow_rotation,
        rectangles=rectangles,
        source=source,
    )


def format_problem(problem: Problem, include_source: bool = False) -> str:
    """Serialize a problem to its text form, as fed to a solver."""
    lines = [
        f"{HEIGHT_KEY}: {problem.variant}",
        f"{ROTATION_KEY}: {'yes' if problem.allow_rotation else 'no'}",
        f"{COUNT_KEY}: {problem.n}",
    ]
    lines.extend(f"{r.width} {r.height}" for r in problem.rectangles)
    if include_source and problem.source is not None:
        lines.append(f"{SOURCE_KEY}: {problem.source}")
    return "\n".join(lines) + "\n"
