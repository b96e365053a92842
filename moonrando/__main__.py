"""
moonrando — entry point.

Usage:
    python -m moonrando randomize IMAGE OUT --rules RULES.json --meta META.json
                                  --codec module:attr [--seed N]
                                  [--settings SETTINGS.json] [--music-dir DIR]
    python -m moonrando serve                 # start web server on :8000
    python -m moonrando serve --port 3000
"""

import logging
import random
import sys
from pathlib import Path


USAGE = __doc__.split("Usage:", 1)[1]


def _options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Split ``--name value`` pairs from positional arguments."""
    positional: list[str] = []
    opts: dict[str, str] = {}
    i = 0
    while i < len(args):
        a = args[i]
        if a.startswith("--"):
            if i + 1 >= len(args):
                raise ValueError(f"{a} needs a value")
            opts[a[2:]] = args[i + 1]
            i += 2
        else:
            positional.append(a)
            i += 1
    return positional, opts


def _randomize(args: list[str]) -> int:
    from moonrando.binding import BindingUnresolved
    from moonrando.features import load_tracks
    from moonrando.image import ImageMismatch, load_codec, load_metadata
    from moonrando.randomizer import Randomizer
    from moonrando.rules import ConfigurationError, load_rules
    from moonrando.settings import Settings, load_settings

    positional, opts = _options(args)
    missing = [k for k in ("rules", "meta", "codec") if k not in opts]
    if len(positional) != 2 or missing:
        print("Usage:" + USAGE)
        return 2
    src, dst = (Path(p) for p in positional)

    seed = int(opts["seed"], 0) if "seed" in opts else random.getrandbits(63)
    settings = load_settings(Path(opts["settings"])) if "settings" in opts else Settings()
    tracks = load_tracks(Path(opts["music-dir"])) if "music-dir" in opts else []

    try:
        randomizer = Randomizer(
            load_rules(Path(opts["rules"])),
            load_codec(opts["codec"]),
            load_metadata(Path(opts["meta"])),
        )
        image = bytearray(src.read_bytes())
        report = randomizer.randomize(image, settings, seed, custom_tracks=tracks)
    except (ConfigurationError, ImageMismatch, BindingUnresolved) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    dst.write_bytes(bytes(image))
    print(f"Seed: {seed}")
    for diag in report.diagnostics:
        print(f"  warning: {diag}")
    for feature in report.skipped_features:
        print(f"  skipped: {feature} (out of free space)")
    print(f"Wrote {dst}")
    return 0


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = sys.argv[1:]
    cmd = args[0] if args else "serve"

    if cmd == "randomize":
        try:
            sys.exit(_randomize(args[1:]))
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(2)
    elif cmd == "serve":
        port = 8000
        host = "127.0.0.1"
        for i, a in enumerate(args):
            if a == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif a == "--host" and i + 1 < len(args):
                host = args[i + 1]

        from moonrando.web.server import main as serve
        serve(host=host, port=port)
    else:
        print(f"Unknown command: {cmd}")
        print("Usage:" + USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
