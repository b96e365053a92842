"""Per-run knobs for the placement engine.

The placer, the misalignment merge and the stage procedures all read
their tuning values from one ``PlacementConfig``.  Pass a modified copy
(``dataclasses.replace(DEFAULT_CONFIG, retry_limit=10)``) into a run
instead of mutating shared state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlacementConfig:
    """Placement rules.  Distances are in image pixels."""

    retry_limit: int = 100
    """Sampling attempts per object before the last candidate is kept."""

    merge_threshold: int = 16
    """Records split across the initial and region tables closer than
    this are merged back into a single record."""

    region_width: int = 320
    """Width of one tiling region of the target engine."""

    border_buffer: int = 3
    """Minimum distance kept between an object and a region seam."""

    region_scoped_stage_limit: int = 0x10
    """Stages with a lower index store objects per region; the rest only
    use the initial table."""


# Module-level singleton, importable everywhere.
DEFAULT_CONFIG = PlacementConfig()
