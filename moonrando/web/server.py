"""
FastAPI web server — randomize images uploaded as base64.

The randomizer is built lazily from environment variables (or a
``.env`` file at the repository root):

    MOONRANDO_RULES      rules JSON
    MOONRANDO_META       image metadata JSON
    MOONRANDO_CODEC      object codec, "module:attribute"
    MOONRANDO_MUSIC_DIR  optional directory of custom tracks
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import random
import threading
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from moonrando.binding import BindingUnresolved
from moonrando.features import MusicTrack, load_tracks
from moonrando.image import ImageMismatch, load_codec, load_metadata
from moonrando.randomizer import Randomizer
from moonrando.rules import ConfigurationError, load_rules
from moonrando.settings import EXPERIMENTAL, Settings


log = logging.getLogger(__name__)

# ── .env loader ────────────────────────────────────────────────────

def _load_env():
    root = Path(__file__).resolve().parents[2]
    for name in (".env", ".env.local"):
        p = root / name
        if p.exists():
            for line in p.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and "=" in line and not line.startswith("#"):
                    k, v = line.split("=", 1)
                    k = k.strip()
                    v = v.strip().strip('"').strip("'")
                    if k and k not in os.environ:
                        os.environ[k] = v

_load_env()

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="moonrando")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Server state ───────────────────────────────────────────────────

_run_lock = threading.Lock()            # one run at a time
_randomizer: Randomizer | None = None
_tracks: list[MusicTrack] = []


def configure(randomizer: Randomizer | None, tracks: list[MusicTrack] | None = None) -> None:
    """Install the randomizer used by the endpoints (None resets)."""
    global _randomizer, _tracks
    _randomizer = randomizer
    _tracks = list(tracks or [])


def _get_randomizer() -> Randomizer:
    global _tracks
    if _randomizer is not None:
        return _randomizer

    rules = os.environ.get("MOONRANDO_RULES")
    meta = os.environ.get("MOONRANDO_META")
    codec = os.environ.get("MOONRANDO_CODEC")
    if not (rules and meta and codec):
        raise HTTPException(503, "Server not configured: set MOONRANDO_RULES, "
                                 "MOONRANDO_META and MOONRANDO_CODEC.")
    try:
        rule_set = load_rules(Path(rules))
    except ConfigurationError as exc:
        log.error("Rules rejected:\n%s", exc)
        raise HTTPException(503, f"Invalid rules: {exc}") from exc
    try:
        object_codec = load_codec(codec)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        log.error("Codec %s rejected: %s", codec, exc)
        raise HTTPException(503, f"Invalid codec: {exc}") from exc
    randomizer = Randomizer(rule_set, object_codec, load_metadata(Path(meta)))

    music_dir = os.environ.get("MOONRANDO_MUSIC_DIR")
    configure(randomizer, load_tracks(Path(music_dir)) if music_dir else None)
    return randomizer


# ── Request models ─────────────────────────────────────────────────

class RandomizeRequest(BaseModel):
    image_b64: str
    seed: int | None = None
    settings: dict[str, bool] = Field(default_factory=dict)


# ── Endpoints ──────────────────────────────────────────────────────

@app.get("/api/settings")
def get_settings():
    """Default value of every user-facing switch."""
    return {
        "defaults": Settings().defaults(),
        "experimental": sorted(EXPERIMENTAL),
    }


@app.post("/api/randomize")
def randomize(req: RandomizeRequest):
    try:
        image = bytearray(base64.b64decode(req.image_b64, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(400, f"image_b64 is not valid base64: {exc}") from exc

    seed = req.seed if req.seed is not None else random.getrandbits(63)

    with _run_lock:
        randomizer = _get_randomizer()
        try:
            report = randomizer.randomize(image, Settings(req.settings), seed,
                                          custom_tracks=_tracks)
        except ImageMismatch as exc:
            raise HTTPException(400, str(exc)) from exc
        except (BindingUnresolved, ConfigurationError) as exc:
            log.error("Run failed for seed %d: %s", seed, exc)
            raise HTTPException(422, str(exc)) from exc

    result = report.to_dict()
    result["image_b64"] = base64.b64encode(bytes(image)).decode("ascii")
    return result


def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("moonrando.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
