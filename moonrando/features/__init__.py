"""Whole-image features: free-space payloads and fixed-offset patches.

Submodules:
  level_order  — stage/round order table and the level-advance patch
  music        — music table shuffle and custom track insertion
  title        — "Randomized" in place of the title screen prompt
"""

from .level_order import (
    generate_level_order, build_level_block, apply_level_order, randomize_level_order,
)
from .music import (
    MusicTrack, parse_music_name, load_tracks,
    shuffle_music, insert_custom_music, randomize_music,
)
from .title import build_title_text, replace_title_text, randomize_title_text

__all__ = [
    # Level order
    "generate_level_order", "build_level_block", "apply_level_order", "randomize_level_order",
    # Music
    "MusicTrack", "parse_music_name", "load_tracks",
    "shuffle_music", "insert_custom_music", "randomize_music",
    # Title
    "build_title_text", "replace_title_text", "randomize_title_text",
]
