"""
Solution evaluator: parse solver output and score the placement.

Solver output is untrusted: every index, count and coordinate is checked
before any geometry is touched. Malformed output raises ParseError.
Well-formed output is always scored, even when the geometry is invalid,
so invalid-but-close solutions stay comparable.

Checks:
  1. Rotation   : no rotated placement unless the problem allows rotation
  2. Container  : fixed-height variants: every rectangle within [0, H]
  3. Overlap    : no two rectangles share positive area (touching is fine)

All geometry is integral and compared exactly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from packt_bench.core.errors import ParseError
from packt_bench.core.models import BoundingBox, Evaluation, Placement, Problem

if TYPE_CHECKING:
    from packt_bench.runner.supervisor import SolverOutput

logger = logging.getLogger(__name__)

PLACEMENT_HEADER = "placement of rectangles"

# Keeps x + width inside int64 for every accepted coordinate.
MAX_COORDINATE = 2 ** 62

ROTATION_FLAGS = {"yes": True, "no": False}


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def _placement_lines(text: str) -> list[str]:
    """Return the non-blank lines that follow the placement header, if any."""
    lines = [line.strip() for line in text.splitlines()]
    for i, line in enumerate(lines):
        if line.lower() == PLACEMENT_HEADER:
            lines = lines[i + 1:]
            break
    return [line for line in lines if line]


def _parse_coordinate(token: str, lineno: int) -> int:
    try:
        value = int(token)
    except ValueError:
        raise ParseError(f"line {lineno}: not an integer coordinate: {token!r}") from None
    if abs(value) > MAX_COORDINATE:
        raise ParseError(f"line {lineno}: coordinate out of range: {value}")
    return value


def _parse_line(line: str, lineno: int, n: int) -> tuple[Optional[int], int, int, bool]:
    """Split one placement line into (explicit index or None, x, y, rotated)."""
    tokens = line.split()
    rotated = False
    flag_positions = [i for i, t in enumerate(tokens) if t.lower() in ROTATION_FLAGS]
    if len(flag_positions) > 1:
        raise ParseError(f"line {lineno}: more than one rotation flag: {line!r}")
    if flag_positions:
        pos = flag_positions[0]
        if pos != len(tokens) - 3:
            raise ParseError(f"line {lineno}: rotation flag must precede x y: {line!r}")
        rotated = ROTATION_FLAGS[tokens.pop(pos).lower()]

    if len(tokens) == 2:
        index = None
    elif len(tokens) == 3:
        try:
            index = int(tokens[0])
        except ValueError:
            raise ParseError(f"line {lineno}: not an integer index: {tokens[0]!r}") from None
        if not 0 <= index < n:
            raise ParseError(f"line {lineno}: rectangle index {index} out of range 0..{n - 1}")
        tokens = tokens[1:]
    else:
        raise ParseError(f"line {lineno}: expected '[index] [yes|no] x y', got {line!r}")

    x = _parse_coordinate(tokens[0], lineno)
    y = _parse_coordinate(tokens[1], lineno)
    return index, x, y, rotated


def parse_placements(problem: Problem, text: str) -> list[Placement]:
    """
    Decode solver output into exactly one placement per rectangle.

    Args:
        problem: The problem the solver was given.
        text:    Raw solver stdout.

    Returns:
        Placements ordered by rectangle index.

    Raises:
        ParseError: Malformed, truncated or index-mismatched output.
    """
    n = problem.n
    lines = _placement_lines(text)
    if len(lines) != n:
        raise ParseError(f"expected {n} placements, got {len(lines)}")

    parsed = [_parse_line(line, lineno, n) for lineno, line in enumerate(lines, start=1)]
    explicit = [fields[0] is not None for fields in parsed]
    if any(explicit) and not all(explicit):
        raise ParseError("rectangle indices given on some lines but not on others")

    slots: list[Optional[Placement]] = [None] * n
    for position, (index, x, y, rotated) in enumerate(parsed):
        index = position if index is None else index
        if slots[index] is not None:
            raise ParseError(f"rectangle index {index} placed more than once")
        slots[index] = Placement(index=index, x=x, y=y, rotated=rotated)

    # every slot is filled: n lines, n distinct indices in range
    return [p for p in slots if p is not None]


# ─────────────────────────────────────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────────────────────────────────────

def placement_extents(problem: Problem, placements: list[Placement]) -> np.ndarray:
    """
    Return an (n, 4) int64 array of [x1, y1, x2, y2] per placement.

    Rotated placements use the rectangle's swapped dimensions.
    """
    extents = np.zeros((len(placements), 4), dtype=np.int64)
    for row, p in zip(extents, placements):
        rect = problem.rectangles[p.index]
        if p.rotated:
            rect = rect.rotated()
        row[:] = (p.x, p.y, p.x + rect.width, p.y + rect.height)
    return extents


def find_overlap(extents: np.ndarray) -> Optional[tuple[int, int]]:
    """
    Find a pair of rectangles sharing positive area.

    Sort-and-sweep along X: after sorting by left edge, only rectangles whose
    left edge lies before rectangle k's right edge can intersect it, and that
    range is located with a binary search.

    Args:
        extents: (n, 4) array of [x1, y1, x2, y2].

    Returns:
        Original row indices (i, j) of the first overlapping pair found, or None.
    """
    if len(extents) < 2:
        return None

    order = np.argsort(extents[:, 0], kind="stable")
    x1, y1, x2, y2 = (extents[order, c] for c in range(4))

    for k in range(len(order) - 1):
        end = int(np.searchsorted(x1, x2[k], side="left"))
        if end <= k + 1:
            continue
        s = slice(k + 1, end)
        x_overlap = np.minimum(x2[s], x2[k]) > np.maximum(x1[s], x1[k])
        y_overlap = np.minimum(y2[s], y2[k]) > np.maximum(y1[s], y1[k])
        hits = np.flatnonzero(x_overlap & y_overlap)
        if hits.size:
            return int(order[k]), int(order[k + 1 + hits[0]])
    return None


def bounding_box(extents: np.ndarray) -> BoundingBox:
    """Smallest axis-aligned box covering every extent (0x0 when empty)."""
    if len(extents) == 0:
        return BoundingBox(0, 0, 0, 0)
    left = int(extents[:, 0].min())
    bottom = int(extents[:, 1].min())
    right = int(extents[:, 2].max())
    top = int(extents[:, 3].max())
    return BoundingBox(left, bottom, right - left, top - bottom)


def find_violations(
    problem: Problem,
    placements: list[Placement],
    extents: np.ndarray,
) -> list[str]:
    """Return a description of every constraint the placement breaks."""
    violations: list[str] = []

    if not problem.allow_rotation:
        rotated = [p.index for p in placements if p.rotated]
        if rotated:
            violations.append(f"rotation not allowed: rectangles {rotated}")

    if problem.variant.is_fixed:
        limit = problem.variant.height
        outside = np.flatnonzero((extents[:, 1] < 0) | (extents[:, 3] > limit))
        if outside.size:
            indices = [placements[i].index for i in outside]
            violations.append(f"outside container height {limit}: rectangles {indices}")

    pair = find_overlap(extents)
    if pair is not None:
        i, j = sorted(placements[k].index for k in pair)
        violations.append(f"rectangles {i} and {j} overlap")

    return violations


# ─────────────────────────────────────────────────────────────────────────────
# Evaluation
# ─────────────────────────────────────────────────────────────────────────────

def score(problem: Problem, placements: list[Placement], duration: float) -> Evaluation:
    """
    Validate a parsed placement and compute its quality metrics.

    Never raises on geometry: invalid placements are scored too.
    """
    extents = placement_extents(problem, placements)
    violations = find_violations(problem, placements, extents)
    box = bounding_box(extents)

    total_area = problem.total_area
    min_area = problem.source.area if problem.source is not None else total_area
    # 1.0 for an empty box; 0.0 when only zero-area rectangles span a real box
    filling_rate = total_area / box.area if box.area else 1.0

    if violations:
        logger.debug("Invalid placement: %s", "; ".join(violations))

    return Evaluation(
        is_valid=not violations,
        bounding_box=box,
        min_area=min_area,
        empty_area=box.area - total_area,
        filling_rate=filling_rate,
        duration=duration,
        violations=tuple(violations),
    )


def evaluate(problem: Problem, output_text: str, duration: float = 0.0) -> Evaluation:
    """
    Parse raw solver output and score it against the problem.

    Raises:
        ParseError: Output does not decode into exactly n placements.
    """
    placements = parse_placements(problem, output_text)
    return score(problem, placements, duration)


def evaluate_output(problem: Problem, output: SolverOutput) -> Evaluation:
    """Evaluate a completed supervised run."""
    return evaluate(problem, output.stdout, output.duration)
