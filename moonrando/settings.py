"""Feature switches keyed by dotted names.

Keys look like ``"<feature>"``, ``"<feature>.<subkey>"`` or
``"<feature>.<stage>.<subkey>"``.  Absent keys are enabled, except the
experimental features listed in ``EXPERIMENTAL`` which stay off until
explicitly switched on.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping


RANDOMIZE_POSITIONS = "randomizePositions"
EXECUTE_PROCEDURES = "executeProcedures"
LEVEL_ORDER = "levelOrder"
RANDOMIZE_MUSIC = "randomizeMusic"
REPLACE_TITLE_TEXT = "replaceTitleText"

EXPERIMENTAL = frozenset({RANDOMIZE_MUSIC})

# Top-level switches shown to users, with their effective defaults.
KNOWN_SWITCHES = (
    RANDOMIZE_POSITIONS,
    f"{LEVEL_ORDER}.randomizeStageOrder",
    f"{LEVEL_ORDER}.randomizeRoundOrder",
    f"{LEVEL_ORDER}.keep_1-1_first",
    f"{LEVEL_ORDER}.keep_5-3_last",
    RANDOMIZE_MUSIC,
    f"{RANDOMIZE_MUSIC}.shuffleStandard",
    f"{RANDOMIZE_MUSIC}.insertCustom",
    REPLACE_TITLE_TEXT,
)


class Settings:
    def __init__(self, values: Mapping[str, bool] | None = None) -> None:
        self._values = dict(values or {})

    def enabled(self, key: str) -> bool:
        if key in self._values:
            return bool(self._values[key])
        return key not in EXPERIMENTAL

    def with_values(self, **values: bool) -> Settings:
        return Settings({**self._values, **values})

    def to_dict(self) -> dict[str, bool]:
        return dict(self._values)

    def defaults(self) -> dict[str, bool]:
        return {key: self.enabled(key) for key in KNOWN_SWITCHES}


def object_type_key(stage: str, object_type: int) -> str:
    return f"{RANDOMIZE_POSITIONS}.{stage}.type:0x{object_type:X}"


def procedure_key(stage: str, procedure: str) -> str:
    return f"{EXECUTE_PROCEDURES}.{stage}.proc:{procedure}"


def load_settings(path: Path) -> Settings:
    """Read a flat ``{"key": bool}`` JSON object."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object of switches")
    return Settings({str(k): bool(v) for k, v in raw.items()})
