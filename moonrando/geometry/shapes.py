"""Shape primitives — integer rectangles and points with inclusive footprints.

A ``Rect(x, y, w, h)`` covers every cell from ``(x, y)`` to ``(x + w, y + h)``
inclusive, i.e. ``(w + 1) * (h + 1)`` cells.  Containment, intersection and
sampling all use that convention.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Union


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    @property
    def cells(self) -> int:
        return 1

    def contains(self, p: Point) -> bool:
        return self.x == p.x and self.y == p.y

    def moved_by(self, dx: int, dy: int) -> Point:
        return Point(self.x + dx, self.y + dy)

    def distance(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    w: int
    h: int

    def __post_init__(self) -> None:
        if self.w < 0 or self.h < 0:
            raise ValueError(f"Rect size must be >= 0, got {self.w}x{self.h}")

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def cells(self) -> int:
        return (self.w + 1) * (self.h + 1)

    def contains(self, p: Point) -> bool:
        """Edge-inclusive containment."""
        return self.x <= p.x <= self.right and self.y <= p.y <= self.bottom

    def overlaps(self, other: Rect) -> bool:
        """Both rects padded by +1 in width/height, then tested for overlap."""
        return (
            self.x < other.x + other.w + 1
            and other.x < self.x + self.w + 1
            and self.y < other.y + other.h + 1
            and other.y < self.y + self.h + 1
        )

    def moved_by(self, dx: int, dy: int) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.w, self.h)

    def points(self) -> Iterator[Point]:
        """Every cell of the inclusive footprint, column by column."""
        for x in range(self.x, self.right + 1):
            for y in range(self.y, self.bottom + 1):
                yield Point(x, y)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


Shape = Union[Rect, Point]


def shapes_intersect(a: Shape, b: Shape) -> bool:
    """Intersection test between two primitives (padded-rect convention)."""
    if isinstance(a, Rect):
        if isinstance(b, Rect):
            return a.overlaps(b)
        return a.contains(b)
    if isinstance(b, Rect):
        return b.contains(a)
    return a == b


def parse_shape(data: dict) -> Shape:
    """Parse ``{"x", "y", "w", "h"}`` into a Rect or ``{"x", "y"}`` into a Point."""
    if "w" in data or "h" in data:
        return Rect(int(data["x"]), int(data["y"]), int(data["w"]), int(data["h"]))
    return Point(int(data["x"]), int(data["y"]))
