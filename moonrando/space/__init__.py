"""Free space inside the image — interval algebra and first-fit allocation."""

from .intervals import Interval, IntervalSet
from .allocator import FreeSpaceMap, SpaceExhausted

__all__ = ["Interval", "IntervalSet", "FreeSpaceMap", "SpaceExhausted"]
