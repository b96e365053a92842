"""randomizeCaveData — reshuffle cave contents and move the kid markers.

Each cave record names a cave graphic (data[0:2]) and an object table
(data[2:4]).  A fixed number of caves per stage must hold a kid; those
draw from the shuffled "with kid" tables, the rest from the empty ones.
Kid markers are then moved onto their caves and carry the kid's bit.
"""

from __future__ import annotations

import logging
from collections import deque

from moonrando.placer.engine import classify_container

from .base import (
    ProcedureContext, Procedure, ObjectTypes, parse_object_types,
    get_u16, put_u16,
)


log = logging.getLogger(__name__)


KID_MARKER_TYPE = 0x49
MARKER_OFFSET = (28, 56)

# Stage index -> number of caves that must contain a kid.
KID_CAVES_PER_STAGE = {9: 7, 10: 9, 11: 10}

TABLES_WITH_KID = (0x00, 0x04, 0x08, 0x10, 0x18, 0x1C, 0x20, 0x24, 0x28)
EXTRA_KID_TABLE_CHOICES = (0x0C, 0x14)     # one of these joins the kid tables
TABLES_WITHOUT_KID = (0x2C, 0x30, 0x34, 0x38)
TABLES_WITHOUT_MARKER = (0x14, 0x20)       # kids there get a marker last

CAVE_FOR_TABLE = {
    0x00: 0x10, 0x04: 0x10, 0x18: 0x10, 0x1C: 0x10, 0x20: 0x10, 0x30: 0x10,
    0x0C: 0x11, 0x10: 0x11, 0x14: 0x11, 0x2C: 0x11, 0x38: 0x11,
    0x08: 0x12, 0x24: 0x12, 0x28: 0x12, 0x34: 0x12,
}

KID_BIT_FOR_TABLE = {
    0x00: 0x001, 0x04: 0x002, 0x08: 0x004, 0x0C: 0x008, 0x10: 0x010,
    0x14: 0x008, 0x18: 0x020, 0x1C: 0x040, 0x20: 0x080, 0x24: 0x100,
    0x28: 0x200,
}


def run(ctx: ProcedureContext) -> None:
    args: ObjectTypes = ctx.args
    rng = ctx.rng
    kid_caves = KID_CAVES_PER_STAGE[ctx.stage.index]

    kid_tables = list(TABLES_WITH_KID)
    kid_tables.append(EXTRA_KID_TABLE_CHOICES[rng.randrange(len(EXTRA_KID_TABLE_CHOICES))])

    caves = [r for r in ctx.records if r.type in args.types]
    markers = deque(r for r in ctx.records if r.type == KID_MARKER_TYPE)

    rng.shuffle(caves)
    rng.shuffle(kid_tables)

    for i, cave in enumerate(caves):
        if i < kid_caves:
            table = kid_tables[i]
        else:
            table = TABLES_WITHOUT_KID[rng.randrange(len(TABLES_WITHOUT_KID))]
        put_u16(cave.data, 0, CAVE_FOR_TABLE[table])
        put_u16(cave.data, 2, table)

    delayed = []
    for cave in caves:
        if not markers:
            break
        table = get_u16(cave.data, 2)
        if table not in kid_tables:
            continue
        if table in TABLES_WITHOUT_MARKER:
            delayed.append(cave)
            continue
        _mark(cave, markers.popleft(), table)

    for cave in delayed:
        if not markers:
            break
        _mark(cave, markers.popleft(), get_u16(cave.data, 2))

    for rec in ctx.records:
        if rec.type == KID_MARKER_TYPE:
            rec.container = classify_container(rec.position, ctx.camera, region_scoped=True)

    log.info("Stage %s: shuffled %d caves (%d with kids)",
             ctx.stage.name, len(caves), min(kid_caves, len(caves)))


def _mark(cave, marker, table: int) -> None:
    marker.x = cave.x + MARKER_OFFSET[0]
    marker.y = cave.y + MARKER_OFFSET[1]
    put_u16(marker.data, 4, KID_BIT_FOR_TABLE.get(table, 0))


PROCEDURE = Procedure(
    name="randomizeCaveData",
    stage_indices=range(9, 12),
    parse_args=parse_object_types,
    run=run,
)
