"""Tests for level order generation and the level-advance patch."""

from __future__ import annotations

import random
import unittest

from moonrando.features import level_order
from moonrando.features.level_order import (
    INITIAL_LEVEL_SWAP_ENTRY_POINT, LEVEL_SWAP_ENTRY_POINT, TERMINATOR,
    apply_level_order, build_level_block, generate_level_order, randomize_level_order,
)
from moonrando.settings import Settings
from moonrando.space import FreeSpaceMap, IntervalSet, SpaceExhausted


FREE_START = 0x70000


def _space(start=FREE_START, end=0x80000) -> FreeSpaceMap:
    return FreeSpaceMap(IntervalSet.of((start, end)))


class TestGenerateLevelOrder(unittest.TestCase):

    def test_permutation_with_terminator(self):
        for seed in range(20):
            rounds = generate_level_order(random.Random(seed))
            self.assertEqual(len(rounds), 16)
            self.assertEqual(rounds[-1], TERMINATOR)
            self.assertEqual(sorted(rounds[:-1]), list(range(15)))

    def test_keep_first_and_last(self):
        for seed in range(20):
            rounds = generate_level_order(random.Random(seed))
            self.assertEqual(rounds[0], 0)
            self.assertEqual(rounds[-2], 14)

    def test_without_keep_flags_order_moves(self):
        firsts = {generate_level_order(random.Random(seed), keep_first=False,
                                       keep_last=False)[0]
                  for seed in range(30)}
        self.assertGreater(len(firsts), 1)

    def test_stage_order_keeps_rounds_together(self):
        for seed in range(20):
            rounds = generate_level_order(random.Random(seed), randomize_rounds=False)[:-1]
            for i in range(0, 15, 3):
                stage = rounds[i] // 3
                self.assertEqual(rounds[i:i + 3], [stage * 3, stage * 3 + 1, stage * 3 + 2])
            self.assertEqual(rounds[:3], [0, 1, 2])
            self.assertEqual(rounds[-3:], [12, 13, 14])

    def test_round_order_keeps_stages_in_place(self):
        for seed in range(20):
            rounds = generate_level_order(random.Random(seed), randomize_stages=False)[:-1]
            stages = [r // 3 for r in rounds]
            self.assertEqual(stages, sorted(stages))
            self.assertEqual(rounds[0], 0)
            self.assertEqual(rounds[-1], 14)

    def test_deterministic(self):
        self.assertEqual(generate_level_order(random.Random(5)),
                         generate_level_order(random.Random(5)))


class TestLevelBlock(unittest.TestCase):

    def test_next_level_table(self):
        rounds = [0, 3, 1, 2, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, TERMINATOR]
        block = build_level_block(rounds)
        self.assertEqual(len(block), 0x86)
        nxt = [int.from_bytes(block[i * 2:i * 2 + 2], "big") for i in range(15)]
        self.assertEqual(nxt[0], 3)
        self.assertEqual(nxt[3], 1)
        self.assertEqual(nxt[1], 2)
        self.assertEqual(nxt[2], 4)
        self.assertEqual(nxt[14], TERMINATOR)

    def test_first_round_stored(self):
        rounds = [6, 7, 8] + [r for r in range(15) if r not in (6, 7, 8)] + [TERMINATOR]
        block = build_level_block(rounds)
        self.assertEqual(block[0x5E:0x60], b"\x00\x06")

    def test_routine_bytes_unchanged(self):
        block = build_level_block(list(range(15)) + [TERMINATOR])
        self.assertEqual(block[0x20:0x28], (0x54DE784252DE7842).to_bytes(8, "little"))


class TestApplyLevelOrder(unittest.TestCase):

    def setUp(self):
        self.image = bytearray(0x80000)
        self.space = _space()

    def test_block_and_jump_stub(self):
        rounds = list(range(15)) + [TERMINATOR]
        start = apply_level_order(self.image, rounds, self.space)
        self.assertEqual(start, FREE_START)
        self.assertEqual(self.image[start:start + 0x86], build_level_block(rounds))
        stub = self.image[LEVEL_SWAP_ENTRY_POINT:LEVEL_SWAP_ENTRY_POINT + 0x14]
        self.assertEqual(stub[0:2], b"\x4e\xb9")
        self.assertEqual(stub[2:6], (FREE_START + 0x20).to_bytes(4, "big"))
        self.assertEqual(self.space.assigned(level_order.SPACE_OWNER, level_order.SPACE_TAG),
                         IntervalSet.of((FREE_START, FREE_START + 0x86)))

    def test_initial_stub_only_when_first_round_moves(self):
        apply_level_order(self.image, list(range(15)) + [TERMINATOR], self.space)
        at = INITIAL_LEVEL_SWAP_ENTRY_POINT
        self.assertEqual(bytes(self.image[at:at + 6]), bytes(6))

        rounds = [3] + [r for r in range(15) if r != 3] + [TERMINATOR]
        start = apply_level_order(self.image, rounds, self.space)
        self.assertEqual(self.image[at:at + 2], b"\x4e\xb9")
        self.assertEqual(self.image[at + 2:at + 6], (start + 0x46).to_bytes(4, "big"))

    def test_rerun_replaces_own_claim(self):
        rounds = list(range(15)) + [TERMINATOR]
        first = apply_level_order(self.image, rounds, self.space)
        second = apply_level_order(self.image, rounds, self.space)
        self.assertEqual(first, second)

    def test_no_room(self):
        space = _space(FREE_START, FREE_START + 0x40)
        with self.assertRaises(SpaceExhausted):
            apply_level_order(self.image, list(range(15)) + [TERMINATOR], space)
        self.assertEqual(self.image, bytearray(0x80000))


class TestRandomizeLevelOrder(unittest.TestCase):

    def test_switched_off(self):
        image = bytearray(0x80000)
        settings = Settings({"levelOrder.randomizeStageOrder": False,
                             "levelOrder.randomizeRoundOrder": False})
        self.assertIsNone(randomize_level_order(image, settings, _space(), random.Random(0)))
        self.assertEqual(image, bytearray(0x80000))

    def test_keep_last_uses_final_round(self):
        settings = Settings({"levelOrder.randomizeStageOrder": False})
        for seed in range(10):
            rounds = randomize_level_order(bytearray(0x80000), settings, _space(),
                                           random.Random(seed))
            self.assertEqual(rounds[-2], 14)

    def test_keep_flags_respected(self):
        settings = Settings({"levelOrder.keep_1-1_first": False,
                             "levelOrder.keep_5-3_last": False})
        orders = [randomize_level_order(bytearray(0x80000), settings, _space(),
                                        random.Random(seed))
                  for seed in range(30)]
        self.assertTrue(any(o[0] != 0 for o in orders))


if __name__ == "__main__":
    unittest.main()
