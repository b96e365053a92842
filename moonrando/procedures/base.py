"""Procedure plumbing — registry entries, run context and payload helpers."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Callable

from moonrando.config import DEFAULT_CONFIG, PlacementConfig
from moonrando.geometry import Rect
from moonrando.placer.models import ObjectRecord
from moonrando.rules.models import StageRules


@dataclass
class ProcedureContext:
    stage: StageRules
    records: list[ObjectRecord]
    args: Any
    camera: Rect
    rng: random.Random
    config: PlacementConfig = DEFAULT_CONFIG


@dataclass(frozen=True)
class Procedure:
    name: str
    stage_indices: range
    parse_args: Callable[[dict, StageRules], Any]
    run: Callable[[ProcedureContext], None]


@dataclass(frozen=True)
class ObjectTypes:
    """Arguments of procedures that act on a list of object types."""

    types: tuple[int, ...]


def parse_object_types(raw: dict, stage: StageRules) -> ObjectTypes:
    types = raw.get("types")
    if not types:
        raise ValueError("'types' must list at least one object type")
    return ObjectTypes(tuple(int(t, 16) for t in types))


def get_u16(data: bytearray, index: int) -> int:
    return (data[index] << 8) | data[index + 1]


def put_u16(data: bytearray, index: int, value: int) -> None:
    """Store the low 16 bits of *value* big-endian (two's complement for negatives)."""
    value &= 0xFFFF
    data[index] = value >> 8
    data[index + 1] = value & 0xFF
