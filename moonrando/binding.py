"""Attribute binder — copies payload bytes from the nearest qualifying neighbour.

Some objects carry attributes that must agree with a related object
(a switch and the gate it opens, a marker and its cave).  After placement
each such object looks for the nearest record of a binder type that sits
in the configured direction and within range, then copies a byte range
from the binder's payload into its own.
"""

from __future__ import annotations

import logging
from typing import Iterable

from moonrando.placer.models import ObjectRecord
from moonrando.rules.models import Binding, ConfigurationError, ValidationError


log = logging.getLogger(__name__)


class BindingUnresolved(Exception):
    """No record qualifies as binder; the rule cannot be satisfied."""

    def __init__(self, record: ObjectRecord) -> None:
        self.record = record
        super().__init__(
            f"Cannot bind type 0x{record.type:X} at ({record.x}, {record.y}): "
            f"no suitable binder found")


def find_binder(
    record: ObjectRecord,
    candidates: Iterable[ObjectRecord],
    bindings: list[Binding],
) -> tuple[ObjectRecord, Binding] | None:
    """Nearest candidate accepted by any of *bindings*.

    Ties keep the first candidate found (rules in order, candidates in
    scan order).
    """
    candidates = list(candidates)
    here = record.position
    best: tuple[ObjectRecord, Binding] | None = None
    best_dist = float("inf")

    for b in bindings:
        for cand in candidates:
            if cand.type != b.binder_type:
                continue
            there = cand.position
            if not b.accepts(there, here):
                continue
            dist = there.distance(here)
            if dist < best_dist:
                best = (cand, b)
                best_dist = dist
    return best


def copy_attribute(binder: ObjectRecord, bindee: ObjectRecord, b: Binding) -> None:
    src_end = b.source_index + b.length
    dst_end = b.destination_index + b.length
    if src_end > len(binder.data) or dst_end > len(bindee.data):
        raise ConfigurationError([ValidationError(
            f"binding:0x{bindee.type:X}", f"0x{b.binder_type:X}",
            f"Byte range exceeds payload (source {b.source_index}..{src_end} of "
            f"{len(binder.data)}, destination {b.destination_index}..{dst_end} of "
            f"{len(bindee.data)})")])
    bindee.data[b.destination_index:dst_end] = binder.data[b.source_index:src_end]


def apply_bindings(
    records: list[ObjectRecord],
    bindings: dict[int, list[Binding]],
) -> int:
    """Bind every record whose type has rules; returns the number bound.

    Raises BindingUnresolved on the first record with no binder.
    """
    bound = 0
    for rec in records:
        rules = bindings.get(rec.type)
        if not rules:
            continue
        found = find_binder(rec, records, rules)
        if found is None:
            raise BindingUnresolved(rec)
        binder, b = found
        copy_attribute(binder, rec, b)
        bound += 1
        log.debug("Bound 0x%X at (%d, %d) to 0x%X at (%d, %d)",
                  rec.type, rec.x, rec.y, binder.type, binder.x, binder.y)
    return bound
