"""Rules loader — reads a rules JSON document, parses and validates it.

Every problem found is collected as a ValidationError; a document with
any error raises a single ConfigurationError listing all of them, so a
broken rule table never reaches the image.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from moonrando.geometry import Point, Region, SAMPLERS, parse_shape

from .models import (
    Binding, ConfigurationError, Direction, HitboxEntry, ProcedureCall,
    RuleSet, SpawnCase, SpawnRef, SpawnResolver, StageRules, ValidationError,
)
from .predicates import compile_predicate


log = logging.getLogger(__name__)

DEFAULT_SAMPLER_NAME = "quadrant"

_DIRECTION_ALIASES = {"OMNI": Direction.ANY}


# ── Parsing helpers ────────────────────────────────────────────────

def parse_type(raw) -> int:
    """Object types are written as hex strings ("4A")."""
    if isinstance(raw, int):
        return raw
    return int(str(raw), 16)


def parse_spawn_ref(data: dict) -> SpawnRef:
    if not isinstance(data, dict):
        raise TypeError(f"spawnMapRef must be a JSON object, got {type(data).__name__}")
    offset = data.get("offset", [0, 0])
    if len(offset) != 2:
        raise ValueError(f"offset must be [x, y], got {offset!r}")
    return SpawnRef(region=data["name"], offset=Point(int(offset[0]), int(offset[1])))


def parse_direction(raw: str | None) -> Direction:
    if raw is None:
        return Direction.ANY
    key = str(raw).upper()
    if key in _DIRECTION_ALIASES:
        return _DIRECTION_ALIASES[key]
    try:
        return Direction(key)
    except ValueError:
        raise ValueError(f"unknown direction '{raw}'") from None


def _parse_region(data, default_sampler: str) -> Region:
    if isinstance(data, dict):
        sampler_name = data.get("sampler", default_sampler)
        shapes = data["shapes"]
    else:
        sampler_name = default_sampler
        shapes = data
    if sampler_name not in SAMPLERS:
        raise ValueError(f"unknown sampler '{sampler_name}'")
    if not isinstance(shapes, list):
        raise TypeError(f"shapes must be a list, got {type(shapes).__name__}")
    if not shapes:
        raise ValueError("Spawn map needs at least one shape")
    return Region([parse_shape(s) for s in shapes], sampler=SAMPLERS[sampler_name])


def _section(data: dict, key: str, kind: type, scope: str, errors: list[ValidationError]):
    """``data[key]`` when it has the expected JSON type, else an empty one."""
    value = data.get(key, kind())
    if not isinstance(value, kind):
        errors.append(ValidationError(
            scope, key, f"Expected a JSON {'object' if kind is dict else 'array'}, "
                        f"got {type(value).__name__}"))
        return kind()
    return value


def _parse_case_target(data: dict) -> SpawnRef | None:
    if data.get("doNotRandomize"):
        return None
    if "spawnMapRef" not in data:
        raise ValueError("needs 'spawnMapRef' or 'doNotRandomize'")
    return parse_spawn_ref(data["spawnMapRef"])


def _parse_resolver(data: dict) -> SpawnResolver:
    if "cases" not in data:
        return SpawnResolver(default=_parse_case_target(data))
    cases = [
        SpawnCase(compile_predicate(c["predicate"]), _parse_case_target(c))
        for c in data["cases"]
    ]
    if "defaultCase" not in data:
        raise ValueError("'cases' requires a 'defaultCase'")
    return SpawnResolver(cases=cases, default=_parse_case_target(data["defaultCase"]))


def _parse_binding(data: dict) -> Binding:
    return Binding(
        binder_type=parse_type(data["type"]),
        direction=parse_direction(data.get("direction")),
        search_range=int(data["range"]),
        source_index=int(data["sourceIndex"]),
        destination_index=int(data["destinationIndex"]),
        length=int(data["length"]),
    )


# ── Sections ───────────────────────────────────────────────────────

def _parse_stage(data: dict, default_sampler: str, errors: list[ValidationError]) -> StageRules | None:
    try:
        stage = StageRules(name=str(data["name"]), index=int(data["index"]))
    except (KeyError, TypeError, ValueError) as exc:
        errors.append(ValidationError("stages", "name", f"Missing/invalid field: {exc}"))
        return None
    scope = f"stage:{stage.name}"

    for name, raw in _section(data, "spawnMaps", dict, scope, errors).items():
        try:
            stage.regions[name] = _parse_region(raw, default_sampler)
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(scope, f"spawnMaps.{name}", str(exc)))
            continue
        overlap = stage.regions[name].overlap_cells()
        if overlap:
            log.warning("Stage %s: spawn map '%s' has %d overlapping cells; "
                        "they are sampled more often", stage.name, name, overlap)

    for i, raw in enumerate(_section(data, "objects", list, scope, errors)):
        field = f"objects[{i}]"
        try:
            obj_type = parse_type(raw["type"])
            resolver = _parse_resolver(raw)
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(scope, field, str(exc)))
            continue
        if obj_type in stage.spawn_refs:
            errors.append(ValidationError(scope, field, f"Duplicate object type {obj_type:#x}"))
            continue
        refs = [c.ref for c in resolver.cases] + [resolver.default]
        for ref in refs:
            if ref is not None and ref.region not in stage.regions:
                errors.append(ValidationError(scope, field, f"Unknown spawn map '{ref.region}'"))
        stage.spawn_refs[obj_type] = resolver

    # Procedures validate against the stage's own regions.
    from moonrando.procedures import parse_call

    for i, raw in enumerate(_section(data, "procedures", list, scope, errors)):
        try:
            if not isinstance(raw, dict):
                raise TypeError("procedure must be a JSON object")
            args = raw.get("args", {})
            if not isinstance(args, dict):
                raise TypeError("'args' must be a JSON object")
            stage.procedures.append(parse_call(raw["name"], args, stage))
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(scope, f"procedures[{i}]", str(exc)))

    return stage


def _parse_hitboxes(data: list, errors: list[ValidationError]) -> list[HitboxEntry]:
    hitboxes: list[HitboxEntry] = []
    names: set[str] = set()
    for i, raw in enumerate(data):
        scope = f"hitbox:{raw.get('name', i)}" if isinstance(raw, dict) else f"hitbox:{i}"
        try:
            predicate = compile_predicate(raw["predicate"]) if "predicate" in raw else None
            entry = HitboxEntry(
                name=raw["name"],
                object_type=parse_type(raw["type"]),
                hitbox=Region([parse_shape(s) for s in raw["shapes"]]),
                predicate=predicate,
            )
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(scope, "parse", f"Missing/invalid field: {exc}"))
            continue
        if not len(entry.hitbox):
            errors.append(ValidationError(scope, "shapes", "Hitbox needs at least one shape"))
        if entry.name in names:
            errors.append(ValidationError(scope, "name", "Duplicate hitbox name"))
        names.add(entry.name)
        hitboxes.append(entry)
    return hitboxes


def _parse_collision_checks(
    data: dict, hitboxes: list[HitboxEntry], errors: list[ValidationError],
) -> dict[str, list[str]]:
    known = {h.name for h in hitboxes}
    checks: dict[str, list[str]] = {}
    for name, partners in data.items():
        if name not in known:
            errors.append(ValidationError("collisionChecks", name, "Unknown hitbox"))
        if not isinstance(partners, list):
            errors.append(ValidationError("collisionChecks", name, "Partners must be a list"))
            continue
        for p in partners:
            if p not in known:
                errors.append(ValidationError("collisionChecks", name, f"Unknown partner hitbox '{p}'"))
        checks[name] = list(partners)
    return checks


def _parse_bindings(data: list, errors: list[ValidationError]) -> dict[int, list[Binding]]:
    bindings: dict[int, list[Binding]] = {}
    for i, raw in enumerate(data):
        try:
            bindee = parse_type(raw["type"])
            parsed = [_parse_binding(b) for b in raw["binders"]]
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError("bindings", f"[{i}]", str(exc)))
            continue
        for b in parsed:
            if b.length < 0 or b.source_index < 0 or b.destination_index < 0:
                errors.append(ValidationError("bindings", f"[{i}]",
                                              "Indices and length must be >= 0"))
        bindings.setdefault(bindee, []).extend(parsed)
    return bindings


# ── Public API ─────────────────────────────────────────────────────

def parse_rules(data: dict) -> RuleSet:
    """Parse an already-decoded rules document; raises ConfigurationError."""
    if not isinstance(data, dict):
        raise ConfigurationError([ValidationError(
            "_rules", "document", f"Expected a JSON object, got {type(data).__name__}")])
    errors: list[ValidationError] = []

    default_sampler = data.get("sampler", DEFAULT_SAMPLER_NAME)
    if default_sampler not in SAMPLERS:
        errors.append(ValidationError("_rules", "sampler", f"Unknown sampler '{default_sampler}'"))
        default_sampler = DEFAULT_SAMPLER_NAME

    stages: list[StageRules] = []
    for raw in _section(data, "stages", list, "_rules", errors):
        stage = _parse_stage(raw, default_sampler, errors)
        if stage is None:
            continue
        if any(s.name == stage.name for s in stages):
            errors.append(ValidationError(f"stage:{stage.name}", "name", "Duplicate stage name"))
            continue
        stages.append(stage)

    hitboxes = _parse_hitboxes(_section(data, "hitboxes", list, "_rules", errors), errors)
    checks = _parse_collision_checks(
        _section(data, "collisionChecks", dict, "_rules", errors), hitboxes, errors)
    bindings = _parse_bindings(_section(data, "bindings", list, "_rules", errors), errors)

    if errors:
        raise ConfigurationError(errors)

    log.info("Loaded rules: %d stages, %d hitboxes, %d bound types",
             len(stages), len(hitboxes), len(bindings))
    return RuleSet(stages=stages, hitboxes=hitboxes,
                   collision_checks=checks, bindings=bindings)


def load_rules(path: Path) -> RuleSet:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError([ValidationError("_rules", "json", f"Parse error: {exc}")]) from exc
    except OSError as exc:
        raise ConfigurationError([ValidationError("_rules", "file", f"Read error: {exc}")]) from exc
    return parse_rules(raw)
