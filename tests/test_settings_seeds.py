"""Tests for feature switches and seed expansion."""

from __future__ import annotations

import json
import random
import tempfile
import unittest
from pathlib import Path

from moonrando import seeds
from moonrando.settings import (
    KNOWN_SWITCHES, Settings, load_settings, object_type_key, procedure_key,
)


class TestSeeds(unittest.TestCase):

    def test_murmur_of_zero(self):
        self.assertEqual(seeds.murmur64(0), 0)

    def test_murmur_masks_input(self):
        self.assertEqual(seeds.murmur64(-1), seeds.murmur64(seeds.MASK64))
        self.assertLessEqual(seeds.murmur64(12345), seeds.MASK64)

    def test_murmur_spreads_neighbours(self):
        self.assertNotEqual(seeds.murmur64(1), seeds.murmur64(2))

    def test_split_advances_one_draw(self):
        rng = random.Random(42)
        seeds.split(rng)
        reference = random.Random(42)
        reference.getrandbits(64)
        self.assertEqual(rng.getrandbits(64), reference.getrandbits(64))

    def test_split_is_deterministic(self):
        a = seeds.split(random.Random(7))
        b = seeds.split(random.Random(7))
        self.assertEqual(a.getrandbits(64), b.getrandbits(64))

    def test_children_are_independent(self):
        parent = random.Random(7)
        first = seeds.split(parent)
        second = seeds.split(parent)
        self.assertNotEqual(first.getrandbits(64), second.getrandbits(64))


class TestSettings(unittest.TestCase):

    def test_absent_keys_enabled(self):
        self.assertTrue(Settings().enabled("levelOrder.randomizeStageOrder"))
        self.assertTrue(Settings().enabled(object_type_key("1-1", 0x12)))

    def test_experimental_off_unless_set(self):
        self.assertFalse(Settings().enabled("randomizeMusic"))
        self.assertTrue(Settings({"randomizeMusic": True}).enabled("randomizeMusic"))

    def test_explicit_values(self):
        s = Settings({"randomizePositions": False})
        self.assertFalse(s.enabled("randomizePositions"))
        self.assertTrue(s.with_values(randomizePositions=True).enabled("randomizePositions"))
        self.assertFalse(s.enabled("randomizePositions"))

    def test_defaults_cover_known_switches(self):
        defaults = Settings().defaults()
        self.assertEqual(set(defaults), set(KNOWN_SWITCHES))
        self.assertFalse(defaults["randomizeMusic"])
        self.assertTrue(defaults["randomizePositions"])
        self.assertTrue(defaults["replaceTitleText"])

    def test_keys(self):
        self.assertEqual(object_type_key("1-1", 0x4a), "randomizePositions.1-1.type:0x4A")
        self.assertEqual(procedure_key("4-1", "randomizeCaveData"),
                         "executeProcedures.4-1.proc:randomizeCaveData")


class TestLoadSettings(unittest.TestCase):

    def test_reads_flat_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text(json.dumps({"randomizeMusic": True, "levelOrder": False}))
            s = load_settings(path)
        self.assertTrue(s.enabled("randomizeMusic"))
        self.assertFalse(s.enabled("levelOrder"))

    def test_rejects_non_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text("[1, 2]")
            with self.assertRaises(ValueError):
                load_settings(path)


if __name__ == "__main__":
    unittest.main()
