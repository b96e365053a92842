"""Title text — replace "Press start button" with "Randomized".

The title screen's tile map and compressed art for the prompt live in
one fixed block; the replacement is written over it in place, so no
free space is needed and no randomness is drawn.
"""

from __future__ import annotations

import logging

from moonrando.settings import REPLACE_TITLE_TEXT, Settings

from .level_order import pack_words


log = logging.getLogger(__name__)


TITLE_TEXT_OFFSET = 0x34846
TITLE_TEXT_LENGTH = 0x1CE

# Tile map first, then the compressed glyphs; the tail is zero fill.
_TITLE_WORDS = (
    0x8305000000000000, 0x8705860585058405, 0x8B058A0589058805,
    0x8C05, 0x0, 0x90058F058E058D05, 0x9405930592059105,
    0x96059505, 0x480148000000000, 0x2504141955064602,
    0x8104731735156618, 0x5258161506047147, 0x58205360B750226,
    0xD0483532870171E, 0x392609570A142847, 0xBFFF00751D350867,
    0x9D5D75C5AE340B46, 0x6E552E099CDBF226, 0xCB9B37D26B95BAE1,
    0x61A5AFE5849226B5, 0xBDC8BC799B35AB98, 0xADB2DC624627954E,
    0xBB2CF282376F2D96, 0xC25BB2B889B41881, 0x35FA6D6ADCB765F9,
    0x41D9F246E60DD366, 0x2D96AD12B0A9A874, 0x21DD9617BC55316C,
    0x6125938EF3ABA438, 0xCB392124B7CBC7AF, 0x19DC8A6533D40C15,
    0xAA61D2B7C5728B4D, 0xC89DBD79855BD64C, 0xC6EDCD9B5792EC57,
    0xE6CD37490289DF96, 0x3C49028ADF9626F5, 0x912458D2A5C517DE,
    0x27492085BB585F4C, 0x4082F46DF1E6D59B, 0x44B05657D9C2481,
    0x4812AC5CBAE00B92, 0xA2749B0BAE48517, 0x649254A3C56E8B19,
)


def build_title_text() -> bytearray:
    return pack_words(_TITLE_WORDS, TITLE_TEXT_LENGTH)


def replace_title_text(image: bytearray) -> None:
    end = TITLE_TEXT_OFFSET + TITLE_TEXT_LENGTH
    if len(image) < end:
        raise ValueError(f"Image too short for title text: {len(image):#x} < {end:#x}")
    image[TITLE_TEXT_OFFSET:end] = build_title_text()
    log.info("Title text replaced at %#x", TITLE_TEXT_OFFSET)


def randomize_title_text(image: bytearray, settings: Settings) -> bool:
    """Write the replacement when switched on; returns whether it ran."""
    if not settings.enabled(REPLACE_TITLE_TEXT):
        return False
    replace_title_text(image)
    return True
