from .shapes import Point, Rect, Shape, shapes_intersect, parse_shape
from .region import Region
from .sampling import (
    Sampler, WeightedSampler, QuadrantSampler,
    DEFAULT_SAMPLER, QUADRANT_SAMPLER, SAMPLERS,
)

__all__ = [
    "Point", "Rect", "Shape", "shapes_intersect", "parse_shape",
    "Region",
    "Sampler", "WeightedSampler", "QuadrantSampler",
    "DEFAULT_SAMPLER", "QUADRANT_SAMPLER", "SAMPLERS",
]
