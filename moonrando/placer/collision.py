"""Collision index — hitbox lookup and directed overlap checks."""

from __future__ import annotations

from typing import Iterable

from moonrando.rules.models import HitboxEntry

from .models import ObjectRecord


class CollisionIndex:
    """Maps records to hitboxes and hitboxes to the partners they avoid.

    The partner relation is directed: ``"door" -> ["enemy"]`` makes a
    newly placed door avoid enemies, not the other way round.
    """

    def __init__(
        self,
        hitboxes: list[HitboxEntry],
        checks: dict[str, list[str]],
    ) -> None:
        self.hitboxes = list(hitboxes)
        by_name = {h.name: h for h in self.hitboxes}
        self._partners: dict[str, list[HitboxEntry]] = {
            name: [by_name[p] for p in partners if p in by_name]
            for name, partners in checks.items()
        }

    def resolve(self, record: ObjectRecord) -> HitboxEntry | None:
        """First hitbox entry matching the record's type and payload."""
        for h in self.hitboxes:
            if h.matches(record):
                return h
        return None

    def partners(self, entry: HitboxEntry) -> list[HitboxEntry]:
        return self._partners.get(entry.name, [])

    def collides(self, record: ObjectRecord, others: Iterable[ObjectRecord]) -> bool:
        """True if *record*, at its current position, overlaps a partner."""
        src = self.resolve(record)
        if src is None:
            return False
        partners = self.partners(src)
        if not partners:
            return False

        src_area = src.hitbox.moved_by(record.x, record.y)
        for other in others:
            if other is record:
                continue
            target = next((h for h in partners if h.matches(other)), None)
            if target is None:
                continue
            if src_area.intersects(target.hitbox.moved_by(other.x, other.y)):
                return True
        return False
