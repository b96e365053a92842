"""Free-space allocator — hands out byte ranges of the image to features.

Every feature that inserts a payload asks for space under an
``(owner, tag)`` key.  Assignments are remembered so the same key can be
re-assigned (a repeated run replaces its own previous claim) while other
keys never see that space as free.
"""

from __future__ import annotations

import logging

from .intervals import Interval, IntervalSet, IntervalSetLike


log = logging.getLogger(__name__)


class SpaceExhausted(Exception):
    """No contiguous free range is large enough for a payload."""

    def __init__(self, owner: str, tag: str, length: int) -> None:
        self.owner = owner
        self.tag = tag
        self.length = length
        super().__init__(
            f"No free range of {length:#x} bytes for {owner}/{tag}")


class FreeSpaceMap:
    """Image free space plus the claims made against it."""

    def __init__(self, free: IntervalSet) -> None:
        self._free = free
        self._assigned: dict[tuple[str, str], IntervalSet] = {}

    @property
    def free(self) -> IntervalSet:
        return self._free

    def free_space(self, owner: str, tag: str) -> IntervalSet:
        """Space usable by *owner*/*tag*: free space minus other keys' claims."""
        taken = IntervalSet()
        for key, claimed in self._assigned.items():
            if key != (owner, tag):
                taken = taken.union(claimed)
        return self._free.difference(taken)

    def assigned(self, owner: str, tag: str) -> IntervalSet:
        return self._assigned.get((owner, tag), IntervalSet())

    def assign(self, owner: str, tag: str, intervals: IntervalSetLike) -> None:
        """Record *intervals* as consumed by *owner*/*tag*, replacing its old claim."""
        claim = IntervalSet().union(intervals)
        outside = claim.difference(self.free_space(owner, tag))
        if outside:
            raise ValueError(
                f"{owner}/{tag} claims space that is not free: {outside!r}")
        self._assigned[(owner, tag)] = claim
        log.debug("Assigned %r to %s/%s", claim, owner, tag)

    def allocate(self, owner: str, tag: str, length: int) -> Interval:
        """First-fit allocation of *length* bytes, recorded under *owner*/*tag*.

        Adds to whatever the key already holds.  Raises SpaceExhausted
        and leaves existing claims untouched when nothing fits.
        """
        found = self.free_space(owner, tag).difference(
            self.assigned(owner, tag)).find_continuous_range(length)
        if found is None:
            raise SpaceExhausted(owner, tag, length)
        self.assign(owner, tag, self.assigned(owner, tag).union(found))
        return found
