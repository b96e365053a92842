"""Object records, storage containers and placement diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from moonrando.geometry import Point


class Container(Enum):
    """Which storage table(s) of the image hold a record."""

    INITIAL = "initial"     # loaded with the stage
    REGION = "region"       # loaded when its region scrolls into view
    ALL = "all"             # both


@dataclass(eq=False)
class ObjectRecord:
    """One placed game object, mutated in place during a run.

    Records compare by identity: two enemies of the same type at the same
    spot are still two records.
    """

    type: int
    x: int
    y: int
    data: bytearray
    container: Container = Container.INITIAL
    allocation_address: int | None = None   # slot in the image's object RAM

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def move_to(self, p: Point) -> None:
        self.x = p.x
        self.y = p.y

    def __repr__(self) -> str:
        return (f"ObjectRecord(type=0x{self.type:X}, at=({self.x}, {self.y}), "
                f"container={self.container.value})")


class PlacementExhausted(Exception):
    """Retry budget ran out; the last (possibly colliding) candidate was kept.

    Soft failure: collected as a diagnostic, never raised out of a run.
    """

    def __init__(self, stage: str, object_type: int, attempts: int, position: Point) -> None:
        self.stage = stage
        self.object_type = object_type
        self.attempts = attempts
        self.position = position
        super().__init__(
            f"Stage {stage}: type 0x{object_type:X} still collides after "
            f"{attempts} attempts, kept at ({position.x}, {position.y})")

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "type": f"0x{self.object_type:X}",
            "attempts": self.attempts,
            "x": self.position.x,
            "y": self.position.y,
        }
