"""Seed expansion — one global seed split into independent random streams."""

from __future__ import annotations

import random

MASK64 = (1 << 64) - 1


def murmur64(value: int) -> int:
    """64-bit finaliser from MurmurHash3 (fmix64)."""
    value &= MASK64
    value ^= value >> 33
    value = (value * 0xFF51AFD7ED558CCD) & MASK64
    value ^= value >> 33
    value = (value * 0xC4CEB9FE1A85EC53) & MASK64
    value ^= value >> 33
    return value


def next_seed(rng: random.Random) -> int:
    return rng.getrandbits(64)


def from_seed(seed: int) -> random.Random:
    return random.Random(murmur64(seed))


def split(rng: random.Random) -> random.Random:
    """Derive a child stream; advances *rng* by exactly one 64-bit draw."""
    return from_seed(next_seed(rng))
