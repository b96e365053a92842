"""Point samplers for regions.

Two independent strategies share the ``Sampler`` protocol:

  WeightedSampler   Weights each shape by its inclusive cell count and
                    picks one cell with a single integer draw.
  QuadrantSampler   Halves the bounding rectangle into quadrants until a
                    single cell remains, discarding quadrants that miss
                    the region.  Never materialises a bitmap, so it copes
                    with huge sparse regions; near irregular edges it is
                    only approximately uniform.

Neither strategy deduplicates overlapping shapes.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Protocol

from .shapes import Point, Rect

if TYPE_CHECKING:
    from .region import Region


# random.random() returns k / 2**53 for an integer k.
_FRACTION_BITS = 53


class Sampler(Protocol):
    name: str

    def sample(self, region: Region, rng: random.Random) -> Point: ...


class WeightedSampler:
    name = "weighted"

    def sample(self, region: Region, rng: random.Random) -> Point:
        shapes = region.shapes
        if not shapes:
            raise ValueError("Cannot sample a point from an empty region")

        total = sum(sh.cells for sh in shapes)
        # Exact integer product of the total and the drawn fraction.
        fraction = int(rng.random() * (1 << _FRACTION_BITS))
        draw = (total * fraction) >> _FRACTION_BITS

        counter = 0
        for sh in shapes:
            cells = sh.cells
            if draw < counter + cells:
                offset = draw - counter
                if isinstance(sh, Rect):
                    width = sh.w + 1
                    return Point(sh.x + offset % width, sh.y + offset // width)
                return sh
            counter += cells
        raise AssertionError(f"draw {draw} beyond total {total}")


class QuadrantSampler:
    name = "quadrant"

    def sample(self, region: Region, rng: random.Random) -> Point:
        rect = region.bounds()
        if rect is None:
            raise ValueError("Cannot sample a point from an empty region")

        while rect.w > 1 or rect.h > 1:
            half_w = rect.w // 2
            half_h = rect.h // 2
            quadrants = (
                Rect(rect.x, rect.y, half_w, half_h),
                Rect(rect.x + half_w, rect.y, rect.w - half_w, half_h),
                Rect(rect.x, rect.y + half_h, half_w, rect.h - half_h),
                Rect(rect.x + half_w, rect.y + half_h, rect.w - half_w, rect.h - half_h),
            )
            hits = [q for q in quadrants if region.intersects(q)]
            rect = hits[rng.randrange(len(hits))]

        candidates = [p for p in rect.points() if region.contains(p)]
        return candidates[rng.randrange(len(candidates))]


DEFAULT_SAMPLER = WeightedSampler()
QUADRANT_SAMPLER = QuadrantSampler()

SAMPLERS: dict[str, Sampler] = {
    DEFAULT_SAMPLER.name: DEFAULT_SAMPLER,
    QUADRANT_SAMPLER.name: QUADRANT_SAMPLER,
}
