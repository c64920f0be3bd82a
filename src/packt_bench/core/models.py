"""Core data models for packing problems and solver evaluations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Rectangle:
    """An axis-aligned rectangle with integer dimensions."""

    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def rotated(self) -> Rectangle:
        """Return the rectangle turned by 90 degrees."""
        return Rectangle(self.height, self.width)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Variant:
    """
    Packing mode of a problem.

    A variant without a height is free strip packing: the container grows in
    both directions. With a height it is strip packing into a container of
    that fixed height and unbounded width.
    """

    height: Optional[int] = None

    @classmethod
    def free(cls) -> Variant:
        return cls(None)

    @classmethod
    def fixed(cls, height: int) -> Variant:
        return cls(height)

    @property
    def is_fixed(self) -> bool:
        return self.height is not None

    def __str__(self) -> str:
        if self.height is None:
            return "free"
        return f"fixed {self.height}"


@dataclass(frozen=True)
class Problem:
    """
    A parsed packing problem instance.

    Attributes:
        variant:        Free or fixed-height packing.
        allow_rotation: Whether a 90° turn of a rectangle is legal.
        rectangles:     Rectangles to place; position identifies a rectangle.
        source:         Container of the perfect packing the instance was
                        generated from, when known.
    """

    variant: Variant
    allow_rotation: bool
    rectangles: tuple[Rectangle, ...]
    source: Optional[Rectangle] = None

    @property
    def n(self) -> int:
        return len(self.rectangles)

    @property
    def total_area(self) -> int:
        """Sum of all rectangle areas."""
        return sum(r.area for r in self.rectangles)

    @property
    def is_perfect_packing(self) -> bool:
        return self.source is not None


@dataclass(frozen=True)
class Placement:
    """Position and orientation assigned to one rectangle."""

    index: int
    x: int
    y: int
    rotated: bool = False


@dataclass(frozen=True)
class BoundingBox:
    """Minimal axis-aligned rectangle enclosing a set of placements."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Evaluation:
    """
    Scored result of one solver run.

    Attributes:
        is_valid:     No overlap, no illegal rotation, no container breach.
        bounding_box: Minimal box around all placed rectangles.
        min_area:     Lower bound on container area (total area or source area).
        empty_area:   bounding_box.area - total rectangle area. Signed; only
                      authoritative when is_valid.
        filling_rate: total rectangle area / bounding_box.area.
        duration:     Wall-clock seconds of the supervised run.
        violations:   Human-readable reasons the placement is invalid.
    """

    is_valid: bool
    bounding_box: BoundingBox
    min_area: int
    empty_area: int
    filling_rate: float
    duration: float
    violations: tuple[str, ...] = ()
