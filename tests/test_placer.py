"""Tests for the placement engine.

Validates:
  - Seam snapping keeps objects off region boundaries
  - Container classification against the initial camera
  - Collision avoidance and the soft retry-exhaustion diagnostic
  - Processing order and determinism of a whole stage
  - Misalignment merge
"""

from __future__ import annotations

import random
import unittest
from dataclasses import replace

from moonrando import seeds
from moonrando.config import DEFAULT_CONFIG
from moonrando.geometry import Point, Rect, Region
from moonrando.placer import (
    CollisionIndex, Container, PlacementExhausted,
    classify_container, merge_misalignments, place_object, randomize_positions, snap_to_seam,
)
from moonrando.rules import HitboxEntry, compile_predicate
from moonrando.settings import Settings, object_type_key
from tests.stage_fixture import make_record, make_rules


CAMERA = Rect(0, 0, 320, 224)


def _box_index(*types: int, size: int = 8) -> CollisionIndex:
    hitboxes = [HitboxEntry(f"t{t:X}", t, Region([Rect(0, 0, size, size)])) for t in types]
    names = [h.name for h in hitboxes]
    return CollisionIndex(hitboxes, {n: names for n in names})


class TestSnapToSeam(unittest.TestCase):

    def test_far_from_seam_unchanged(self):
        self.assertEqual(snap_to_seam(100, 320, 3), 100)

    def test_just_after_seam_pushed_right(self):
        self.assertEqual(snap_to_seam(321, 320, 3), 323)
        self.assertEqual(snap_to_seam(320, 320, 3), 323)

    def test_just_before_seam_pushed_left(self):
        self.assertEqual(snap_to_seam(318, 320, 3), 317)
        self.assertEqual(snap_to_seam(639, 320, 3), 637)

    def test_left_image_edge_untouched(self):
        self.assertEqual(snap_to_seam(0, 320, 3), 0)
        self.assertEqual(snap_to_seam(3, 320, 3), 3)

    def test_result_keeps_buffer(self):
        for x in range(4, 2000):
            off = snap_to_seam(x, 320, 3) % 320
            self.assertTrue(3 <= off <= 317, x)


class TestClassifyContainer(unittest.TestCase):

    def test_inside_camera_is_all(self):
        self.assertIs(classify_container(Point(320, 224), CAMERA, True), Container.ALL)

    def test_outside_camera_is_region(self):
        self.assertIs(classify_container(Point(321, 10), CAMERA, True), Container.REGION)

    def test_unscoped_stage_is_initial(self):
        self.assertIs(classify_container(Point(10, 10), CAMERA, False), Container.INITIAL)


class TestCollisionIndex(unittest.TestCase):

    def test_directed_checks(self):
        hitboxes = [
            HitboxEntry("door", 0x50, Region([Rect(0, 0, 8, 8)])),
            HitboxEntry("enemy", 0x12, Region([Rect(0, 0, 8, 8)])),
        ]
        index = CollisionIndex(hitboxes, {"door": ["enemy"]})
        door = make_record(0x50, 0, 0)
        enemy = make_record(0x12, 4, 4)
        self.assertTrue(index.collides(door, [enemy]))
        self.assertFalse(index.collides(enemy, [door]))

    def test_record_does_not_collide_with_itself(self):
        index = _box_index(0x12)
        rec = make_record(0x12, 0, 0)
        self.assertFalse(index.collides(rec, [rec]))

    def test_predicate_selects_hitbox(self):
        big = HitboxEntry("big", 0x12, Region([Rect(-50, -50, 100, 100)]),
                          predicate=compile_predicate({"dataEquals": {"index": 0, "value": 1}}))
        small = HitboxEntry("small", 0x12, Region([Point(0, 0)]))
        index = CollisionIndex([big, small], {"big": ["small"], "small": ["small"]})
        self.assertIs(index.resolve(make_record(0x12, 0, 0, b"\x01")), big)
        self.assertIs(index.resolve(make_record(0x12, 0, 0, b"\x02")), small)
        self.assertTrue(index.collides(make_record(0x12, 0, 0, b"\x01"), [make_record(0x12, 30, 30)]))
        self.assertFalse(index.collides(make_record(0x12, 0, 0, b"\x02"), [make_record(0x12, 30, 30)]))

    def test_unknown_type_never_collides(self):
        index = _box_index(0x12)
        self.assertFalse(index.collides(make_record(0x99, 0, 0), [make_record(0x12, 0, 0)]))


class TestPlaceObject(unittest.TestCase):

    def test_single_cell_region(self):
        rec = make_record(0x12, 500, 500)
        diag = place_object(rec, [], Region([Rect(40, 40, 0, 0)]), Point(0, 0),
                            CAMERA, _box_index(), random.Random(1))
        self.assertIsNone(diag)
        self.assertEqual(rec.position, Point(40, 40))
        self.assertIs(rec.container, Container.ALL)

    def test_offset_applied(self):
        rec = make_record(0x12, 0, 0)
        place_object(rec, [], Region([Point(40, 40)]), Point(5, -8),
                     CAMERA, _box_index(), random.Random(1))
        self.assertEqual(rec.position, Point(45, 32))

    def test_avoids_collision(self):
        blocker = make_record(0x12, 0, 0)
        region = Region([Point(4, 0), Point(100, 0)])
        for seed in range(20):
            rec = make_record(0x12, 0, 0)
            diag = place_object(rec, [blocker], region, Point(0, 0),
                                CAMERA, _box_index(0x12), random.Random(seed))
            self.assertIsNone(diag)
            self.assertEqual(rec.position, Point(100, 0))

    def test_exhaustion_is_soft(self):
        blocker = make_record(0x12, 40, 40)
        rec = make_record(0x12, 0, 0)
        config = replace(DEFAULT_CONFIG, retry_limit=5)
        with self.assertLogs("moonrando.placer.engine", level="WARNING"):
            diag = place_object(rec, [blocker], Region([Point(40, 40)]), Point(0, 0),
                                CAMERA, _box_index(0x12), random.Random(0),
                                stage="1-1", config=config)
        self.assertIsInstance(diag, PlacementExhausted)
        self.assertEqual(diag.attempts, 5)
        self.assertEqual(diag.to_dict()["type"], "0x12")
        self.assertEqual(rec.position, Point(40, 40))     # last candidate kept

    def test_first_attempt_accepted_without_neighbours(self):
        config = replace(DEFAULT_CONFIG, retry_limit=1)
        region = Region([Rect(0, 0, 300, 200)])
        for seed in range(20):
            diag = place_object(make_record(0x12, 0, 0), [], region, Point(0, 0),
                                CAMERA, _box_index(0x12), random.Random(seed), config=config)
            self.assertIsNone(diag)

    def test_disjoint_hitboxes_never_exhaust(self):
        config = replace(DEFAULT_CONFIG, retry_limit=1)
        others = [make_record(0x12, x, 0) for x in range(0, 200, 20)]
        region = Region([Rect(0, 100, 200, 50)])
        for seed in range(20):
            diag = place_object(make_record(0x12, 0, 0), others, region, Point(0, 0),
                                CAMERA, _box_index(0x12), random.Random(seed), config=config)
            self.assertIsNone(diag)

    def test_zero_retry_limit_rejected(self):
        with self.assertRaises(ValueError):
            place_object(make_record(0x12, 0, 0), [], Region([Point(0, 0)]), Point(0, 0),
                         CAMERA, _box_index(), random.Random(0),
                         config=replace(DEFAULT_CONFIG, retry_limit=0))

    def test_snaps_off_seam(self):
        rec = make_record(0x12, 0, 0)
        place_object(rec, [], Region([Point(320, 10)]), Point(0, 0),
                     CAMERA, _box_index(), random.Random(0))
        self.assertEqual(rec.x, 323)
        self.assertIs(rec.container, Container.REGION)


class TestRandomizePositions(unittest.TestCase):

    def setUp(self):
        self.rules = make_rules()
        self.stage = self.rules.stage("1-1")
        self.index = CollisionIndex(self.rules.hitboxes, self.rules.collision_checks)

    def _records(self):
        return [
            make_record(0x12, 10, 100),
            make_record(0x50, 200, 100, bytes([4, 0, 4, 0, 4])),
            make_record(0x13, 50, 100, b"\x00\x1c"),
            make_record(0x13, 60, 100),
            make_record(0x12, 30, 100),
            make_record(0x77, 1, 1),
        ]

    def _run(self, seed, settings=None):
        records = self._records()
        diags = randomize_positions(self.stage, records, CAMERA, self.index,
                                    random.Random(seed), settings or Settings())
        return records, diags

    def test_randomized_objects_land_in_their_region(self):
        records, diags = self._run(5)
        self.assertEqual(diags, [])
        floor = self.stage.regions["floor"]
        for rec in (records[0], records[1], records[4]):
            self.assertTrue(floor.contains(rec.position), rec)
        # default case applies the (0, -4) offset
        self.assertEqual(records[3].y, 96)

    def test_pinned_and_unknown_objects_stay(self):
        records, _ = self._run(5)
        self.assertEqual(records[2].position, Point(50, 100))
        self.assertEqual(records[5].position, Point(1, 1))

    def test_last_enemy_avoids_everything_before_it(self):
        for seed in range(10):
            records, diags = self._run(seed)
            self.assertEqual(diags, [])
            self.assertFalse(self.index.collides(records[4], records[:4]), seed)

    def test_deterministic(self):
        a, _ = self._run(1234)
        b, _ = self._run(1234)
        self.assertEqual([r.position for r in a], [r.position for r in b])
        self.assertEqual([r.container for r in a], [r.container for r in b])

    def test_different_seeds_differ(self):
        a, _ = self._run(1)
        b, _ = self._run(2)
        self.assertNotEqual([r.position for r in a], [r.position for r in b])

    def test_type_switch_disables_randomization(self):
        settings = Settings({object_type_key("1-1", 0x12): False})
        records, _ = self._run(5, settings)
        self.assertEqual(records[0].position, Point(10, 100))
        self.assertEqual(records[4].position, Point(30, 100))
        self.assertEqual(records[3].y, 96)

    def test_each_record_draws_one_seed(self):
        rng = random.Random(77)
        records = self._records()
        randomize_positions(self.stage, records, CAMERA, self.index, rng, Settings())
        expected = random.Random(77)
        for _ in range(4):      # four queued records
            seeds.next_seed(expected)
        self.assertEqual(rng.getrandbits(64), expected.getrandbits(64))


class TestMergeMisalignments(unittest.TestCase):

    def test_close_pair_merged(self):
        a = make_record(0x12, 100, 100, container=Container.INITIAL, allocation_address=0x40)
        b = make_record(0x12, 105, 103, container=Container.REGION, allocation_address=0x40)
        merged = merge_misalignments([a, b])
        self.assertEqual(merged, [a])
        self.assertIs(a.container, Container.ALL)

    def test_far_pair_kept(self):
        a = make_record(0x12, 100, 100, container=Container.INITIAL, allocation_address=0x40)
        b = make_record(0x12, 116, 100, container=Container.REGION, allocation_address=0x40)
        self.assertEqual(merge_misalignments([a, b]), [a, b])

    def test_different_slots_kept(self):
        a = make_record(0x12, 100, 100, container=Container.INITIAL, allocation_address=0x40)
        b = make_record(0x12, 100, 100, container=Container.REGION, allocation_address=0x50)
        self.assertEqual(len(merge_misalignments([a, b])), 2)

    def test_same_container_kept(self):
        a = make_record(0x12, 100, 100, container=Container.REGION, allocation_address=0x40)
        b = make_record(0x12, 101, 100, container=Container.REGION, allocation_address=0x40)
        self.assertEqual(len(merge_misalignments([a, b])), 2)


if __name__ == "__main__":
    unittest.main()
