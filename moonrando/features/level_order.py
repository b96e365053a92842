"""Level order — shuffle stages and/or rounds and patch the game to follow it.

The game advances rounds through a hard-coded increment.  We insert a
next-level table plus a short routine into free space and redirect the
level-advance code (and, when the run does not start at round 0, the
initial level load) to it.
"""

from __future__ import annotations

import logging
import random

from moonrando.settings import LEVEL_ORDER, Settings
from moonrando.space import FreeSpaceMap, SpaceExhausted


log = logging.getLogger(__name__)


LEVEL_COUNT = 15
ROUNDS_IN_STAGE = 3
STAGE_COUNT = LEVEL_COUNT // ROUNDS_IN_STAGE
TERMINATOR = 15

SPACE_OWNER = "randomizer"
SPACE_TAG = "levelSwapAssembly"

LEVEL_SWAP_ENTRY_POINT = 0x511C
INITIAL_LEVEL_SWAP_ENTRY_POINT = 0x6432

# Next-level table (0x00..0x1F), first round (0x5E) and the routine itself.
_BLOCK_LENGTH = 0x86
_BLOCK_WORDS = (
    0x0, 0x0, 0x0, 0x0,
    0x54DE784252DE7842,
    0x5EDE784256DE7842,
    0x1000400C42DE3830,
    0xFB3148E3754E0265,
    0x380C754E42DEC000,
    0x0A0000679ADF3C00,
    0x754E00DE1400FC11,
    0x0000FC31FEFFE748,
    0x30510000B94E42DE,
    0xF83140DD40DEF831,
    0x40DEF83142DD42DE,
    0x42DC42DEF83140DC,
    0x0000754EFF7FDF4C,
)
_FIRST_ROUND_OFFSET = 0x5E
_ROUTINE_OFFSET = 0x20
_INITIAL_ROUTINE_OFFSET = 0x46

_JUMP_STUB_LENGTH = 0x14
_JUMP_STUB_WORDS = (0xF94E00000000B94E, 0x30510000)
_CALL_STUB_LENGTH = 0x6
_CALL_STUB_WORDS = (0xB94E,)


def pack_words(words: tuple[int, ...], length: int) -> bytearray:
    """Little-endian 64-bit words, cut or zero-padded to *length*."""
    raw = b"".join(w.to_bytes(8, "little") for w in words)
    return bytearray(raw[:length].ljust(length, b"\x00"))


def generate_level_order(
    rng: random.Random,
    *,
    randomize_stages: bool = True,
    randomize_rounds: bool = True,
    keep_first: bool = True,
    keep_last: bool = True,
) -> list[int]:
    """Round indices in play order, followed by the terminator (15).

    With only stage order randomized, the three rounds of each stage stay
    together.  Otherwise rounds are shuffled freely and, when stage order
    is fixed, stably regrouped by stage.
    """
    if randomize_stages and not randomize_rounds:
        stages = list(range(STAGE_COUNT))
        rng.shuffle(stages)
        if keep_first:
            stages.remove(0)
            stages.insert(0, 0)
        if keep_last:
            stages.remove(STAGE_COUNT - 1)
            stages.append(STAGE_COUNT - 1)
        rounds = [r for s in stages
                  for r in range(s * ROUNDS_IN_STAGE, (s + 1) * ROUNDS_IN_STAGE)]
    else:
        rounds = list(range(LEVEL_COUNT))
        rng.shuffle(rounds)
        if not randomize_stages:
            rounds.sort(key=lambda r: r // ROUNDS_IN_STAGE)
        if keep_first:
            rounds.remove(0)
            rounds.insert(0, 0)
        if keep_last:
            rounds.remove(LEVEL_COUNT - 1)
            rounds.append(LEVEL_COUNT - 1)

    rounds.append(TERMINATOR)
    return rounds


def build_level_block(rounds: list[int]) -> bytearray:
    """The free-space block: next-level table, first round, routine."""
    block = pack_words(_BLOCK_WORDS, _BLOCK_LENGTH)
    next_level = [0] * len(rounds)
    current = rounds[0]
    for level in rounds[1:]:
        next_level[current] = level
        current = level
    for i, level in enumerate(next_level):
        block[i * 2:i * 2 + 2] = level.to_bytes(2, "big")
    block[_FIRST_ROUND_OFFSET:_FIRST_ROUND_OFFSET + 2] = rounds[0].to_bytes(2, "big")
    return block


def apply_level_order(image: bytearray, rounds: list[int], space: FreeSpaceMap) -> int:
    """Write the block and patch the entry points; returns the block address.

    Raises SpaceExhausted when no free range can hold the block.
    """
    block = build_level_block(rounds)
    found = space.free_space(SPACE_OWNER, SPACE_TAG).find_continuous_range(len(block))
    if found is None:
        raise SpaceExhausted(SPACE_OWNER, SPACE_TAG, len(block))

    start = found.start
    image[start:start + len(block)] = block
    space.assign(SPACE_OWNER, SPACE_TAG, found)

    stub = pack_words(_JUMP_STUB_WORDS, _JUMP_STUB_LENGTH)
    stub[2:6] = (start + _ROUTINE_OFFSET).to_bytes(4, "big")
    image[LEVEL_SWAP_ENTRY_POINT:LEVEL_SWAP_ENTRY_POINT + len(stub)] = stub

    if rounds[0] != 0:
        stub = pack_words(_CALL_STUB_WORDS, _CALL_STUB_LENGTH)
        stub[2:6] = (start + _INITIAL_ROUTINE_OFFSET).to_bytes(4, "big")
        image[INITIAL_LEVEL_SWAP_ENTRY_POINT:INITIAL_LEVEL_SWAP_ENTRY_POINT + len(stub)] = stub

    log.info("Level order %s written at %#x", rounds[:-1], start)
    return start


def randomize_level_order(
    image: bytearray, settings: Settings, space: FreeSpaceMap, rng: random.Random,
) -> list[int] | None:
    """Run the feature as configured; None when it is switched off."""
    randomize_stages = settings.enabled(f"{LEVEL_ORDER}.randomizeStageOrder")
    randomize_rounds = settings.enabled(f"{LEVEL_ORDER}.randomizeRoundOrder")
    if not (randomize_stages or randomize_rounds):
        return None

    rounds = generate_level_order(
        rng,
        randomize_stages=randomize_stages,
        randomize_rounds=randomize_rounds,
        keep_first=settings.enabled(f"{LEVEL_ORDER}.keep_1-1_first"),
        keep_last=settings.enabled(f"{LEVEL_ORDER}.keep_5-3_last"),
    )
    apply_level_order(image, rounds, space)
    return rounds
