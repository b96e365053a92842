"""Region — an ordered union of rectangles and points."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Iterable, Iterator

from shapely.geometry import box as shapely_box
from shapely.ops import unary_union

from .shapes import Point, Rect, Shape, shapes_intersect

if TYPE_CHECKING:
    from .sampling import Sampler


class Region:
    """Union of shape primitives with an optional sampling strategy.

    Shapes are append-only; ``moved_by`` returns a translated copy that
    keeps the same sampler.  Shape order only matters for equality and
    for which cell a given random draw lands on.
    """

    def __init__(
        self,
        shapes: Iterable[Shape] = (),
        sampler: Sampler | None = None,
    ) -> None:
        self._shapes: list[Shape] = []
        self.sampler = sampler
        for sh in shapes:
            self.add(sh)

    # ── Construction ───────────────────────────────────────────────

    def add(self, shape: Shape) -> None:
        if not isinstance(shape, (Rect, Point)):
            raise TypeError(f"Expected Rect or Point, got {type(shape).__name__}")
        self._shapes.append(shape)

    @property
    def shapes(self) -> tuple[Shape, ...]:
        return tuple(self._shapes)

    def __iter__(self) -> Iterator[Shape]:
        return iter(self._shapes)

    def __len__(self) -> int:
        return len(self._shapes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Region):
            return NotImplemented
        return self._shapes == other._shapes

    def __repr__(self) -> str:
        return f"Region({self._shapes!r})"

    # ── Queries ────────────────────────────────────────────────────

    def contains(self, p: Point) -> bool:
        return any(sh.contains(p) for sh in self._shapes)

    def bounds(self) -> Rect | None:
        """Minimal enclosing rectangle, or None for an empty region.

        Every edge is compared on its own, so a shape that pushes two
        edges out at once widens both.
        """
        if not self._shapes:
            return None
        min_x = min_y = None
        max_x = max_y = None
        for sh in self._shapes:
            if isinstance(sh, Rect):
                x0, y0, x1, y1 = sh.x, sh.y, sh.right, sh.bottom
            else:
                x0, y0, x1, y1 = sh.x, sh.y, sh.x, sh.y
            if min_x is None:
                min_x, min_y, max_x, max_y = x0, y0, x1, y1
                continue
            if x0 < min_x:
                min_x = x0
            if y0 < min_y:
                min_y = y0
            if x1 > max_x:
                max_x = x1
            if y1 > max_y:
                max_y = y1
        return Rect(min_x, min_y, max_x - min_x, max_y - min_y)

    def intersects(self, other: Region | Shape) -> bool:
        others = other._shapes if isinstance(other, Region) else (other,)
        for src in self._shapes:
            for tgt in others:
                if shapes_intersect(src, tgt):
                    return True
        return False

    def moved_by(self, dx: int, dy: int) -> Region:
        return Region((sh.moved_by(dx, dy) for sh in self._shapes), self.sampler)

    def cell_count(self) -> int:
        """Total inclusive cells, counting overlaps once per shape."""
        return sum(sh.cells for sh in self._shapes)

    # ── Footprint (shapely) ────────────────────────────────────────

    def footprint(self):
        """Union of every shape's cells as a shapely geometry.

        Each cell ``(x, y)`` is the unit square ``[x, x+1) x [y, y+1)``,
        so the geometry's area equals the number of distinct cells.
        """
        boxes = []
        for sh in self._shapes:
            if isinstance(sh, Rect):
                boxes.append(shapely_box(sh.x, sh.y, sh.right + 1, sh.bottom + 1))
            else:
                boxes.append(shapely_box(sh.x, sh.y, sh.x + 1, sh.y + 1))
        return unary_union(boxes)

    def unique_cell_count(self) -> int:
        if not self._shapes:
            return 0
        return int(round(self.footprint().area))

    def overlap_cells(self) -> int:
        """Cells covered by more than one shape (extra weight under weighted sampling)."""
        return self.cell_count() - self.unique_cell_count()

    # ── Sampling ───────────────────────────────────────────────────

    def sample(self, rng: random.Random, sampler: Sampler | None = None) -> Point:
        """Draw a point inside the region.

        Uses *sampler* when given, else the region's own sampler, else
        the weighted default.
        """
        from .sampling import DEFAULT_SAMPLER

        strategy = sampler or self.sampler or DEFAULT_SAMPLER
        return strategy.sample(self, rng)

    def to_list(self) -> list[dict]:
        return [sh.to_dict() for sh in self._shapes]
