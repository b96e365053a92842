"""fixStage1Doors — re-derive each door's facing from where it ended up."""

from __future__ import annotations

import logging

from moonrando.rules.loader import parse_spawn_ref
from moonrando.rules.models import SpawnRef, StageRules

from .base import ProcedureContext, Procedure


log = logging.getLogger(__name__)


DOOR_TYPE = 0x50
DOOR_IDS = (0x04, 0x0C, 0x14, 0x1C, 0x24, 0x2C, 0x34, 0x3C)
LEFT_FACING_BIT = 0x10
FLAG_BYTES = (0, 2, 4)


def parse_args(raw: dict, stage: StageRules) -> SpawnRef:
    if "spawnMapRef" not in raw:
        raise ValueError("missing 'spawnMapRef'")
    ref = parse_spawn_ref(raw["spawnMapRef"])
    if ref.region not in stage.regions:
        raise ValueError(f"unknown spawn map '{ref.region}'")
    return ref


def run(ctx: ProcedureContext) -> None:
    """Doors inside the left-facing region get the facing bit, others lose it."""
    ref: SpawnRef = ctx.args
    left_area = ctx.stage.region_for(ref).moved_by(ref.offset.x, ref.offset.y)

    flipped = 0
    for rec in ctx.records:
        if rec.type != DOOR_TYPE or rec.data[2] not in DOOR_IDS:
            continue
        if left_area.contains(rec.position):
            for i in FLAG_BYTES:
                rec.data[i] |= LEFT_FACING_BIT
            flipped += 1
        else:
            for i in FLAG_BYTES:
                rec.data[i] &= ~LEFT_FACING_BIT & 0xFF
    log.info("Stage %s: %d door(s) face left", ctx.stage.name, flipped)


PROCEDURE = Procedure(
    name="fixStage1Doors",
    stage_indices=range(0, 3),
    parse_args=parse_args,
    run=run,
)
