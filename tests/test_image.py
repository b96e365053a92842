"""Tests for image metadata, codec loading and the checksum."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from moonrando.image import (
    ImageMismatch, ObjectCodec, checksum, fix_checksum, load_codec, load_metadata, parse_metadata,
)
from moonrando.space import IntervalSet
from tests.stage_fixture import StageCodec, make_metadata


class TestImageMetadata(unittest.TestCase):

    def test_parse_hex_and_ints(self):
        meta = parse_metadata({
            "name": "moonwalker",
            "imageLength": "0x80000",
            "cameraWidth": 320,
            "freeSpace": [{"start": "0x70000", "end": 0x80000}],
        })
        self.assertEqual(meta.image_length, 0x80000)
        self.assertEqual(meta.camera_height, 224)
        self.assertEqual(meta.free_space, IntervalSet.of((0x70000, 0x80000)))

    def test_to_dict_round_trips(self):
        meta = make_metadata()
        self.assertEqual(parse_metadata(meta.to_dict()).free_space, meta.free_space)

    def test_check_length(self):
        with self.assertRaises(ImageMismatch):
            make_metadata().check(bytearray(0x100))
        make_metadata().check(bytearray(0x80000))

    def test_free_space_outside_image(self):
        meta = make_metadata(free_space=IntervalSet.of((0x7FF00, 0x80100)))
        with self.assertRaises(ImageMismatch):
            meta.check(bytearray(0x80000))

    def test_load_metadata(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "meta.json"
            path.write_text(json.dumps(make_metadata().to_dict()))
            meta = load_metadata(path)
        self.assertEqual(meta.image_length, 0x80000)


class TestLoadCodec(unittest.TestCase):

    def test_class_is_instantiated(self):
        codec = load_codec("tests.stage_fixture:StageCodec")
        self.assertIsInstance(codec, StageCodec)
        self.assertIsInstance(codec, ObjectCodec)

    def test_missing_attribute_part(self):
        with self.assertRaises(ValueError):
            load_codec("tests.stage_fixture")

    def test_not_a_codec(self):
        with self.assertRaises(TypeError):
            load_codec("tests.stage_fixture:make_metadata")


class TestChecksum(unittest.TestCase):

    def test_sums_words_after_header(self):
        image = bytearray(0x400)
        image[0x100:0x102] = b"\xff\xff"      # header, ignored
        image[0x200:0x202] = b"\x12\x34"
        image[0x3FE:0x400] = b"\x00\x01"
        self.assertEqual(checksum(image), 0x1235)

    def test_wraps_to_16_bits(self):
        image = bytearray(0x204)
        image[0x200:0x204] = b"\xff\xff\x00\x02"
        self.assertEqual(checksum(image), 0x0001)

    def test_fix_checksum_writes_header(self):
        image = bytearray(0x400)
        image[0x200:0x202] = b"\xbe\xef"
        fix_checksum(image)
        self.assertEqual(image[0x18E:0x190], b"\xbe\xef")


if __name__ == "__main__":
    unittest.main()
