"""Music — shuffle the five stage tracks and optionally mix in custom ones.

The music pointer table holds five 32-bit big-endian addresses; the
options menu lists one fixed-width name per track.  Both are permuted
together.  Custom tracks are copied into free space and replace
standard slots; a track that does not fit is skipped in favour of the
next candidate.
"""

from __future__ import annotations

import logging
import random
import struct
from collections import deque
from dataclasses import dataclass
from pathlib import Path

from moonrando.settings import RANDOMIZE_MUSIC, Settings
from moonrando.space import FreeSpaceMap, Interval, IntervalSet


log = logging.getLogger(__name__)


MUSIC_TABLE_OFFSET = 0x600A4
MUSIC_TABLE_LEN = 5
NAME_TABLE_OFFSET = 0x6936
NAME_LENGTH = 0x13

SPACE_OWNER = "music"
SPACE_TAG = "customMusic"

MAX_TRACK_SIZE = 0x400000
TRACK_SUFFIX = ".smps"

# Menu font: digits and capitals map to themselves.
_NAME_CHARS = {
    " ": 0x20, "'": 0x3A, "=": 0x3B, ".": 0x3C, "!": 0x3D,
    "-": 0x3E, "?": 0x3F, ",": 0x5B,
}
_NAME_CHARS.update({c: ord(c) for c in "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"})


@dataclass
class MusicTrack:
    name: str           # file name; shown in the options menu without extension
    data: bytes


def parse_music_name(name: str, length: int = NAME_LENGTH) -> bytes:
    """Menu entry for a file name: upper-cased, unknown characters dropped,
    space-padded to ``length - 1`` and zero-terminated."""
    if "." in name:
        name = name[:name.rindex(".")]
    encoded = [_NAME_CHARS[c] for c in name.upper() if c in _NAME_CHARS]
    body = bytes(encoded[:length - 1]).ljust(length - 1, b" ")
    return body + b"\x00"


def load_tracks(music_dir: Path) -> list[MusicTrack]:
    """``*.smps`` files under 4 MiB, sorted by name."""
    tracks = []
    for path in sorted(music_dir.iterdir()):
        if not path.is_file() or not path.name.lower().endswith(TRACK_SUFFIX):
            continue
        if not 0 < path.stat().st_size < MAX_TRACK_SIZE:
            log.info("Skipping %s: empty or too large", path.name)
            continue
        tracks.append(MusicTrack(path.name, path.read_bytes()))
    return tracks


def _read_table(image: bytearray) -> tuple[list[int], list[bytes]]:
    addrs = [
        struct.unpack_from(">I", image, MUSIC_TABLE_OFFSET + i * 4)[0]
        for i in range(MUSIC_TABLE_LEN)
    ]
    names = [
        bytes(image[NAME_TABLE_OFFSET + i * NAME_LENGTH:NAME_TABLE_OFFSET + (i + 1) * NAME_LENGTH])
        for i in range(MUSIC_TABLE_LEN)
    ]
    return addrs, names


def _write_table(image: bytearray, addrs: list[int], names: list[bytes]) -> None:
    for i, (addr, name) in enumerate(zip(addrs, names)):
        struct.pack_into(">I", image, MUSIC_TABLE_OFFSET + i * 4, addr)
        start = NAME_TABLE_OFFSET + i * NAME_LENGTH
        image[start:start + NAME_LENGTH] = name


def shuffle_music(image: bytearray, rng: random.Random) -> list[int]:
    """Permute the standard tracks and their menu names; returns the permutation."""
    addrs, names = _read_table(image)
    order = rng.sample(range(MUSIC_TABLE_LEN), MUSIC_TABLE_LEN)
    _write_table(image, [addrs[n] for n in order], [names[n] for n in order])
    log.info("Music order: %s", order)
    return order


def insert_custom_music(
    image: bytearray,
    tracks: list[MusicTrack],
    space: FreeSpaceMap,
    rng: random.Random,
    *,
    shuffle_standard: bool = True,
) -> list[int]:
    """Fill the five slots from standard and custom tracks.

    Indices below five are standard tracks, the rest index *tracks*.
    Returns the chosen index per slot.
    """
    total = MUSIC_TABLE_LEN + len(tracks)
    candidates = deque(rng.sample(range(total), total))
    free = space.free_space(SPACE_OWNER, SPACE_TAG)
    placed: dict[int, Interval] = {}
    chosen: list[int] = []

    for _ in range(MUSIC_TABLE_LEN):
        n = candidates.popleft()
        while n >= MUSIC_TABLE_LEN:
            found = free.find_continuous_range(len(tracks[n - MUSIC_TABLE_LEN].data))
            if found is not None:
                free = free.difference(found)
                placed[n] = found
                break
            log.info("No room for custom track %s", tracks[n - MUSIC_TABLE_LEN].name)
            n = candidates.popleft()
        if n < MUSIC_TABLE_LEN:
            candidates.append(n)
        chosen.append(n)

    addrs, names = _read_table(image)
    out_addrs: list[int] = []
    out_names: list[bytes] = []
    used = IntervalSet()
    for slot, n in enumerate(chosen):
        if n < MUSIC_TABLE_LEN:
            src = n if shuffle_standard else slot
            out_addrs.append(addrs[src])
            out_names.append(names[src])
            continue
        track = tracks[n - MUSIC_TABLE_LEN]
        found = placed[n]
        image[found.start:found.start + len(track.data)] = track.data
        used = used.union(found)
        out_addrs.append(found.start)
        out_names.append(parse_music_name(track.name))
        log.info("Slot %d: custom track %s at %#x", slot, track.name, found.start)

    _write_table(image, out_addrs, out_names)
    space.assign(SPACE_OWNER, SPACE_TAG, used)
    return chosen


def randomize_music(
    image: bytearray,
    settings: Settings,
    space: FreeSpaceMap,
    rng: random.Random,
    tracks: list[MusicTrack] = (),
) -> list[int] | None:
    """Run the feature as configured; None when nothing changed."""
    if not settings.enabled(RANDOMIZE_MUSIC):
        return None
    shuffle_standard = settings.enabled(f"{RANDOMIZE_MUSIC}.shuffleStandard")
    insert_custom = settings.enabled(f"{RANDOMIZE_MUSIC}.insertCustom")

    tracks = [t for t in tracks if t.data]
    if insert_custom and tracks:
        return insert_custom_music(image, tracks, space, rng,
                                   shuffle_standard=shuffle_standard)
    if shuffle_standard:
        return shuffle_music(image, rng)
    return None
