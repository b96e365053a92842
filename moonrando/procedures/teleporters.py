"""randomizeTeleporters — rewire every teleporter to a random safe target.

One teleporter per floor (floors = distinct y values) is chained to the
next floor in a shuffled floor order, so every floor stays reachable.
The remaining teleporters point anywhere safe.
"""

from __future__ import annotations

import logging
import random

from moonrando.placer.models import ObjectRecord

from .base import ProcedureContext, Procedure, ObjectTypes, parse_object_types, put_u16


log = logging.getLogger(__name__)


OFFSET_RATIO = 16
X_CLAMP = (128, 448)
Y_CLAMP = (96, 772)

# Landing here from close by drops the player into a pit.
HAZARD_TARGET = (288, 496)
HAZARD_MIN_DY = 300


class NoSafeTarget(Exception):
    pass


def pick_safe_target(
    src: ObjectRecord, pool: list[ObjectRecord], rng: random.Random,
) -> ObjectRecord:
    attempts = min(len(pool) * 10, 100)
    for _ in range(attempts):
        target = rng.choice(pool)
        if (target.x, target.y) == HAZARD_TARGET:
            if abs(src.y - target.y) < HAZARD_MIN_DY:
                log.info("Teleport mapping rejected: (%d, %d) -> (%d, %d)",
                         src.x, src.y, target.x, target.y)
                continue
            log.warning("Dangerous teleport mapping accepted: (%d, %d) -> (%d, %d)",
                        src.x, src.y, target.x, target.y)
        return target
    raise NoSafeTarget(f"No safe teleport target for {src!r}")


def _clamp(v: int, lo: int, hi: int) -> int:
    return min(max(v, lo), hi)


def _scaled(offset: int) -> int:
    """Offset in 16-pixel steps, truncated towards zero, then pushed one step out."""
    v = int(offset / OFFSET_RATIO)
    return v - 1 if v < 0 else v + 1


def run(ctx: ProcedureContext) -> None:
    args: ObjectTypes = ctx.args
    rng = ctx.rng
    teleporters = [r for r in ctx.records if r.type in args.types]
    if not teleporters:
        return

    floors: dict[int, list[ObjectRecord]] = {}
    for t in teleporters:
        floors.setdefault(t.y, []).append(t)
    order = sorted(floors)
    rng.shuffle(order)

    mapping: dict[ObjectRecord, ObjectRecord] = {}
    try:
        for i, floor in enumerate(order):
            src = rng.choice(floors[floor])
            mapping[src] = pick_safe_target(src, floors[order[(i + 1) % len(order)]], rng)
        for t in teleporters:
            if t not in mapping:
                mapping[t] = pick_safe_target(t, teleporters, rng)
    except NoSafeTarget as exc:
        log.warning("Stage %s: teleporters left unchanged: %s", ctx.stage.name, exc)
        return

    for src, target in mapping.items():
        if target.allocation_address is None:
            raise ValueError(f"Teleport target {target!r} has no allocation address")
        if (src.x, src.y) == (target.x, target.y):
            x_val = y_val = 1
        else:
            x_val = _scaled(target.x - _clamp(src.x, *X_CLAMP))
            y_val = _scaled(target.y - _clamp(src.y, *Y_CLAMP))
        put_u16(src.data, 0, target.allocation_address)
        put_u16(src.data, 2, y_val)
        put_u16(src.data, 4, x_val)

    log.info("Stage %s: rewired %d teleporters across %d floors",
             ctx.stage.name, len(mapping), len(order))


PROCEDURE = Procedure(
    name="randomizeTeleporters",
    stage_indices=range(0x0C, 0x0D),
    parse_args=parse_object_types,
    run=run,
)
