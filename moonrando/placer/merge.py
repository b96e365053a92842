"""Misalignment merge — rejoin records the image stores twice.

The image keeps an initial table and a per-region table.  An object that
lives in both is sometimes stored as two slightly offset copies; placing
them independently would duplicate it.  Copies with the same type and
allocation address that sit closer than the merge threshold collapse into
a single ALL record.
"""

from __future__ import annotations

import logging

from moonrando.config import DEFAULT_CONFIG, PlacementConfig

from .models import Container, ObjectRecord


log = logging.getLogger(__name__)


def merge_misalignments(
    records: list[ObjectRecord],
    config: PlacementConfig = DEFAULT_CONFIG,
) -> list[ObjectRecord]:
    """Return *records* with split INITIAL/REGION pairs merged, order kept."""
    kept: list[ObjectRecord] = []
    merged = 0
    for rec in records:
        if rec.container is Container.ALL:
            kept.append(rec)
            continue

        counterpart = (Container.REGION if rec.container is Container.INITIAL
                       else Container.INITIAL)
        twin = next(
            (k for k in kept
             if k.container is counterpart
             and k.type == rec.type
             and k.allocation_address == rec.allocation_address
             and k.position.distance(rec.position) < config.merge_threshold),
            None,
        )
        if twin is None:
            kept.append(rec)
            continue
        twin.container = Container.ALL
        merged += 1

    if merged:
        log.info("Merged %d misaligned record pair(s)", merged)
    return kept
