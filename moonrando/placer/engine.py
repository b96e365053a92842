"""Main placement engine — seeded sampling with collision retries.

Per object:

  SELECT_REGION      resolve the spawn reference from type + payload
  SAMPLE / SNAP      draw a point, add the offset, keep clear of seams
  COLLISION_CHECK    retry while the hitbox overlaps a partner
  CLASSIFY           choose the storage container from the final point
"""

from __future__ import annotations

import logging
import random

from moonrando import seeds
from moonrando.config import DEFAULT_CONFIG, PlacementConfig
from moonrando.geometry import Point, Rect, Region
from moonrando.rules.models import SpawnRef, StageRules
from moonrando.settings import Settings, object_type_key

from .collision import CollisionIndex
from .models import Container, ObjectRecord, PlacementExhausted


log = logging.getLogger(__name__)


# ── Helpers ────────────────────────────────────────────────────────


def snap_to_seam(x: int, region_width: int, buffer: int) -> int:
    """Push *x* at least *buffer* pixels away from the nearest region seam."""
    if x <= buffer:
        return x
    off = x % region_width
    if off <= buffer:
        return x + buffer - off
    if off >= region_width - buffer:
        return x - (off - region_width + buffer)
    return x


def classify_container(p: Point, camera: Rect, region_scoped: bool) -> Container:
    """ALL when the point is inside the initial camera view, else REGION.

    Stages that are not region scoped only have an initial table.
    """
    if not region_scoped:
        return Container.INITIAL
    if camera.contains(p):
        return Container.ALL
    return Container.REGION


# ── Single object ──────────────────────────────────────────────────


def place_object(
    record: ObjectRecord,
    placed: list[ObjectRecord],
    region: Region,
    offset: Point,
    camera: Rect,
    collisions: CollisionIndex,
    rng: random.Random,
    *,
    stage: str = "",
    region_scoped: bool = True,
    config: PlacementConfig = DEFAULT_CONFIG,
) -> PlacementExhausted | None:
    """Move *record* to a random legal point of *region*.

    *placed* holds every record already finalised for the stage.  When
    all ``config.retry_limit`` attempts collide, the last candidate is
    kept and a PlacementExhausted diagnostic is returned instead of
    raised.
    """
    if config.retry_limit < 1:
        raise ValueError(f"retry_limit must be >= 1, got {config.retry_limit}")

    exhausted: PlacementExhausted | None = None
    for attempt in range(1, config.retry_limit + 1):
        p = region.sample(rng)
        x = snap_to_seam(p.x + offset.x, config.region_width, config.border_buffer)
        record.move_to(Point(x, p.y + offset.y))

        if not collisions.collides(record, placed):
            break
        if attempt == config.retry_limit:
            exhausted = PlacementExhausted(stage, record.type, attempt, record.position)
            log.warning("%s", exhausted)

    record.container = classify_container(record.position, camera, region_scoped)
    log.debug("Placed 0x%X at (%d, %d) container=%s",
              record.type, record.x, record.y, record.container.value)
    return exhausted


# ── Whole stage ────────────────────────────────────────────────────


def randomize_positions(
    stage: StageRules,
    records: list[ObjectRecord],
    camera: Rect,
    collisions: CollisionIndex,
    rng: random.Random,
    settings: Settings,
    *,
    config: PlacementConfig = DEFAULT_CONFIG,
) -> list[PlacementExhausted]:
    """Place every randomizable record of a stage, in scan order.

    Records that stay put are finalised first; queued records are then
    placed one by one, each avoiding everything finalised before it.
    Each queued record draws its own stream from *rng*.
    """
    finished: list[ObjectRecord] = []
    queued: list[tuple[ObjectRecord, SpawnRef]] = []

    for rec in records:
        resolver = stage.spawn_refs.get(rec.type)
        ref = resolver.resolve(rec.data) if resolver is not None else None
        if ref is None or not settings.enabled(object_type_key(stage.name, rec.type)):
            finished.append(rec)
            continue
        queued.append((rec, ref))

    region_scoped = stage.index < config.region_scoped_stage_limit
    diagnostics: list[PlacementExhausted] = []
    for rec, ref in queued:
        diag = place_object(
            rec, finished,
            stage.region_for(ref), ref.offset,
            camera, collisions, seeds.split(rng),
            stage=stage.name, region_scoped=region_scoped, config=config,
        )
        if diag is not None:
            diagnostics.append(diag)
        finished.append(rec)

    log.info("Stage %s: placed %d of %d objects (%d over retry budget)",
             stage.name, len(queued), len(records), len(diagnostics))
    return diagnostics
