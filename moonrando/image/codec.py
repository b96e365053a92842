"""Object codec protocol and the image checksum.

The record layout of a game image is host-specific; the randomizer only
talks to it through an ObjectCodec, named on the command line as
``"package.module:attribute"``.
"""

from __future__ import annotations

import importlib
import logging
import struct
from typing import Protocol, runtime_checkable

from moonrando.placer.models import ObjectRecord

from .models import ImageMetadata


log = logging.getLogger(__name__)

CHECKSUM_OFFSET = 0x18E
CHECKSUM_START = 0x200


@runtime_checkable
class ObjectCodec(Protocol):
    def load_objects(self, image: bytes, meta: ImageMetadata) -> list[list[ObjectRecord]]:
        """One record list per stage index, in stored order."""
        ...

    def save_objects(
        self, image: bytearray, stages: list[list[ObjectRecord]], meta: ImageMetadata,
    ) -> None:
        ...

    def initial_camera(self, image: bytes, stage_index: int, meta: ImageMetadata) -> tuple[int, int]:
        """Top-left corner of the camera when the stage starts."""
        ...


def load_codec(spec: str) -> ObjectCodec:
    """Import ``"module:attribute"``; classes are instantiated without arguments."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Codec must be given as 'module:attribute', got '{spec}'")
    obj = getattr(importlib.import_module(module_name), attr)
    if isinstance(obj, type):
        obj = obj()
    if not isinstance(obj, ObjectCodec):
        raise TypeError(f"{spec} does not implement load_objects/save_objects/initial_camera")
    log.debug("Using object codec %s", spec)
    return obj


def checksum(image: bytes | bytearray) -> int:
    """16-bit sum of the big-endian words after the header."""
    body = bytes(image[CHECKSUM_START:])
    if len(body) % 2:
        body += b"\x00"
    total = sum(w for (w,) in struct.iter_unpack(">H", body))
    return total & 0xFFFF


def fix_checksum(image: bytearray) -> None:
    struct.pack_into(">H", image, CHECKSUM_OFFSET, checksum(image))
