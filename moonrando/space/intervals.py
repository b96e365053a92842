"""Half-open integer intervals and normalised sets of them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Union


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open range ``[start, end)``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Interval start {self.start:#x} > end {self.end:#x}")

    @property
    def length(self) -> int:
        return self.end - self.start

    def __contains__(self, addr: int) -> bool:
        return self.start <= addr < self.end

    def overlaps(self, other: Interval) -> bool:
        return self.start < other.end and other.start < self.end

    def __repr__(self) -> str:
        return f"[{self.start:#x}, {self.end:#x})"


class IntervalSet:
    """Disjoint, sorted, coalesced intervals.

    ``union`` and ``difference`` return new sets; a set is never
    modified after construction.
    """

    def __init__(self, intervals: Iterable[Interval] = ()) -> None:
        self._items: tuple[Interval, ...] = _normalise(intervals)

    @classmethod
    def of(cls, *ranges: tuple[int, int]) -> IntervalSet:
        return cls(Interval(s, e) for s, e in ranges)

    # ── Container protocol ─────────────────────────────────────────

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, addr: int) -> bool:
        return any(addr in iv for iv in self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"IntervalSet({list(self._items)!r})"

    @property
    def total(self) -> int:
        return sum(iv.length for iv in self._items)

    # ── Algebra ────────────────────────────────────────────────────

    def union(self, other: IntervalSetLike) -> IntervalSet:
        return IntervalSet(self._items + _as_tuple(other))

    def difference(self, other: IntervalSetLike) -> IntervalSet:
        cut = _as_tuple(other)
        result: list[Interval] = []
        for iv in self._items:
            pieces = [iv]
            for c in cut:
                next_pieces = []
                for p in pieces:
                    if not p.overlaps(c):
                        next_pieces.append(p)
                        continue
                    if p.start < c.start:
                        next_pieces.append(Interval(p.start, c.start))
                    if c.end < p.end:
                        next_pieces.append(Interval(c.end, p.end))
                pieces = next_pieces
            result.extend(pieces)
        return IntervalSet(result)

    def overlaps(self, other: IntervalSetLike) -> bool:
        return any(a.overlaps(b) for a in self._items for b in _as_tuple(other))

    def find_continuous_range(self, length: int) -> Interval | None:
        """First-fit: the lowest-addressed ``length``-sized slice of a large enough gap."""
        if length <= 0:
            raise ValueError(f"Range length must be > 0, got {length}")
        for iv in self._items:
            if iv.length >= length:
                return Interval(iv.start, iv.start + length)
        return None


IntervalSetLike = Union[Interval, IntervalSet]


def _as_tuple(other: IntervalSetLike) -> tuple[Interval, ...]:
    if isinstance(other, Interval):
        return (other,)
    return tuple(other)


def _normalise(intervals: Iterable[Interval]) -> tuple[Interval, ...]:
    """Sort, drop empties, merge overlapping and touching intervals."""
    merged: list[Interval] = []
    for iv in sorted(iv for iv in intervals if iv.length > 0):
        if merged and iv.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, iv.end))
        else:
            merged.append(iv)
    return tuple(merged)
