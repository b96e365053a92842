"""Rule-table dataclasses — typed representations of a rules JSON document."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from moonrando.geometry import Point, Region

from .predicates import Predicate

if TYPE_CHECKING:
    from moonrando.placer.models import ObjectRecord


# ── Errors ─────────────────────────────────────────────────────────


@dataclass
class ValidationError:
    scope: str      # "stage:1-1", "hitbox:door", "bindings", ...
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.scope}.{self.field}: {self.message}"


class ConfigurationError(Exception):
    """Rule tables are malformed; raised before any byte is touched."""

    def __init__(self, errors: list[ValidationError]) -> None:
        self.errors = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} rule error(s):\n{lines}")


# ── Spawn resolution ───────────────────────────────────────────────


@dataclass(frozen=True)
class SpawnRef:
    """Spawn region name plus the pixel offset added to every sample."""

    region: str
    offset: Point = Point(0, 0)


@dataclass
class SpawnCase:
    predicate: Predicate
    ref: SpawnRef | None        # None = leave the object where it is


@dataclass
class SpawnResolver:
    """Picks the spawn reference for an object from its payload.

    Cases are tried in order; the first whose predicate accepts the
    payload decides.  With no match the default applies (which may
    itself be None).
    """

    cases: list[SpawnCase] = field(default_factory=list)
    default: SpawnRef | None = None

    def resolve(self, data: bytes) -> SpawnRef | None:
        for case in self.cases:
            if case.predicate(data):
                return case.ref
        return self.default


# ── Hitboxes ───────────────────────────────────────────────────────


@dataclass
class HitboxEntry:
    """Collision footprint of an object type, relative to its position."""

    name: str
    object_type: int
    hitbox: Region
    predicate: Predicate | None = None

    def matches(self, record: ObjectRecord) -> bool:
        if record.type != self.object_type:
            return False
        return self.predicate is None or self.predicate(record.data)


# ── Bindings ───────────────────────────────────────────────────────


class Direction(Enum):
    """Where the binder must sit relative to the bound object.

    Screen coordinates: y grows downwards, so "north" means a smaller
    or equal y.
    """

    N = "N"
    S = "S"
    E = "E"
    W = "W"
    NE = "NE"
    NW = "NW"
    SE = "SE"
    SW = "SW"
    ANY = "ANY"

    def accepts(self, binder: Point, bindee: Point) -> bool:
        sx, sy = _DIRECTION_SIGNS[self]
        if sx and (binder.x - bindee.x) * sx < 0:
            return False
        if sy and (binder.y - bindee.y) * sy < 0:
            return False
        return True


# Direction -> (x sign, y sign) the binder offset must not contradict; 0 is free.
_DIRECTION_SIGNS = {
    Direction.N: (0, -1),
    Direction.S: (0, 1),
    Direction.E: (1, 0),
    Direction.W: (-1, 0),
    Direction.NE: (1, -1),
    Direction.NW: (-1, -1),
    Direction.SE: (1, 1),
    Direction.SW: (-1, 1),
    Direction.ANY: (0, 0),
}


@dataclass(frozen=True)
class Binding:
    binder_type: int
    direction: Direction
    search_range: int
    source_index: int
    destination_index: int
    length: int

    def accepts(self, binder: Point, bindee: Point) -> bool:
        return (self.direction.accepts(binder, bindee)
                and binder.distance(bindee) < self.search_range)


# ── Stages ─────────────────────────────────────────────────────────


@dataclass
class ProcedureCall:
    name: str
    args: Any = None            # typed per-procedure record (see moonrando.procedures)


@dataclass
class StageRules:
    name: str
    index: int
    regions: dict[str, Region] = field(default_factory=dict)
    spawn_refs: dict[int, SpawnResolver] = field(default_factory=dict)
    procedures: list[ProcedureCall] = field(default_factory=list)

    def region_for(self, ref: SpawnRef) -> Region:
        return self.regions[ref.region]


@dataclass
class RuleSet:
    stages: list[StageRules]
    hitboxes: list[HitboxEntry] = field(default_factory=list)
    collision_checks: dict[str, list[str]] = field(default_factory=dict)
    bindings: dict[int, list[Binding]] = field(default_factory=dict)

    def stage(self, name: str) -> StageRules | None:
        for s in self.stages:
            if s.name == name:
                return s
        return None
