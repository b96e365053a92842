"""Image metadata — what the randomizer needs to know about a game image."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from moonrando.space import Interval, IntervalSet


class ImageMismatch(Exception):
    """The image does not match its metadata; nothing is written."""


@dataclass
class ImageMetadata:
    name: str
    image_length: int
    camera_width: int = 320
    camera_height: int = 224
    free_space: IntervalSet = field(default_factory=IntervalSet)

    def check(self, image: bytes | bytearray) -> None:
        if len(image) != self.image_length:
            raise ImageMismatch(
                f"{self.name}: expected {self.image_length:#x} bytes, got {len(image):#x}")
        for iv in self.free_space:
            if iv.end > len(image):
                raise ImageMismatch(f"{self.name}: free range {iv!r} lies outside the image")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "imageLength": hex(self.image_length),
            "cameraWidth": self.camera_width,
            "cameraHeight": self.camera_height,
            "freeSpace": [{"start": hex(iv.start), "end": hex(iv.end)} for iv in self.free_space],
        }


def _int(raw) -> int:
    """Accept plain integers and hex strings ("0x70000")."""
    if isinstance(raw, int):
        return raw
    return int(str(raw), 0)


def parse_metadata(data: dict) -> ImageMetadata:
    return ImageMetadata(
        name=data.get("name", ""),
        image_length=_int(data["imageLength"]),
        camera_width=_int(data.get("cameraWidth", 320)),
        camera_height=_int(data.get("cameraHeight", 224)),
        free_space=IntervalSet(
            Interval(_int(r["start"]), _int(r["end"])) for r in data.get("freeSpace", [])
        ),
    )


def load_metadata(path: Path) -> ImageMetadata:
    return parse_metadata(json.loads(Path(path).read_text(encoding="utf-8")))
