"""Randomizer — one seeded run over a game image.

Order of a run:

  1. load object records, merge misaligned duplicates
  2. per stage: place objects, run procedures, apply bindings
  3. save records, then level order and music (free-space payloads)
     and the title text
  4. finalise (checksum)

The seed is expanded into independent streams in a fixed order, so a
switched-off feature never shifts the randomness seen by later ones.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Sequence

from moonrando import seeds
from moonrando.binding import apply_bindings
from moonrando.config import DEFAULT_CONFIG, PlacementConfig
from moonrando.features import (
    MusicTrack, randomize_level_order, randomize_music, randomize_title_text,
)
from moonrando.geometry import Rect
from moonrando.image import ImageMetadata, ImageMismatch, ObjectCodec, fix_checksum
from moonrando.placer import (
    CollisionIndex, ObjectRecord, PlacementExhausted,
    merge_misalignments, randomize_positions,
)
from moonrando.procedures import PROCEDURES, ProcedureContext, run_call
from moonrando.rules import RuleSet, StageRules
from moonrando.settings import (
    LEVEL_ORDER, RANDOMIZE_MUSIC, RANDOMIZE_POSITIONS, Settings, procedure_key,
)
from moonrando.space import FreeSpaceMap, SpaceExhausted


log = logging.getLogger(__name__)


@dataclass
class RunReport:
    seed: int
    diagnostics: list[PlacementExhausted] = field(default_factory=list)
    skipped_features: list[str] = field(default_factory=list)
    level_order: list[int] | None = None
    music: list[int] | None = None
    title_text: bool = False
    bound: int = 0

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "skipped_features": list(self.skipped_features),
            "level_order": self.level_order,
            "music": self.music,
            "title_text": self.title_text,
            "bound": self.bound,
        }


class Randomizer:
    """Rules, codec and metadata for one image version; reusable across runs."""

    def __init__(
        self,
        rules: RuleSet,
        codec: ObjectCodec,
        metadata: ImageMetadata,
        *,
        config: PlacementConfig = DEFAULT_CONFIG,
        finalize: Callable[[bytearray], None] = fix_checksum,
    ) -> None:
        self.rules = rules
        self.codec = codec
        self.metadata = metadata
        self.config = config
        self.finalize = finalize
        self.collisions = CollisionIndex(rules.hitboxes, rules.collision_checks)

    # ── Run ─────────────────────────────────────────────────────────

    def randomize(
        self,
        image: bytearray,
        settings: Settings,
        seed: int,
        *,
        custom_tracks: Sequence[MusicTrack] = (),
    ) -> RunReport:
        """Randomize *image* in place.

        The buffer is only meaningful after a successful return: a fatal
        error leaves it partially written.
        """
        self.metadata.check(image)
        report = RunReport(seed=seed)
        seed_gen = random.Random(seed)

        if settings.enabled(RANDOMIZE_POSITIONS):
            self._randomize_stages(image, settings, seed_gen, report)
        else:
            for _ in self.rules.stages:
                seeds.next_seed(seed_gen)

        space = FreeSpaceMap(self.metadata.free_space)
        level_rng = seeds.split(seed_gen)
        seeds.next_seed(seed_gen)           # reserved for boss order
        music_rng = seeds.split(seed_gen)

        try:
            report.level_order = randomize_level_order(image, settings, space, level_rng)
        except SpaceExhausted as exc:
            log.warning("Level order skipped: %s", exc)
            report.skipped_features.append(LEVEL_ORDER)

        try:
            report.music = randomize_music(image, settings, space, music_rng, list(custom_tracks))
        except SpaceExhausted as exc:
            log.warning("Music skipped: %s", exc)
            report.skipped_features.append(RANDOMIZE_MUSIC)

        report.title_text = randomize_title_text(image, settings)
        self.finalize(image)
        log.info("Seed %d: %d placement diagnostics, %d bindings",
                 seed, len(report.diagnostics), report.bound)
        return report

    # ── Stages ──────────────────────────────────────────────────────

    def _randomize_stages(
        self,
        image: bytearray,
        settings: Settings,
        seed_gen: random.Random,
        report: RunReport,
    ) -> None:
        stages = self.codec.load_objects(bytes(image), self.metadata)
        stages = [merge_misalignments(records, self.config) for records in stages]

        for stage in self.rules.stages:
            main = seeds.split(seed_gen)
            pos_rng = seeds.split(main)
            proc_rng = seeds.split(main)

            if stage.index >= len(stages):
                raise ImageMismatch(
                    f"Stage {stage.name} has index {stage.index:#x}, "
                    f"image holds {len(stages)} stages")
            records = stages[stage.index]
            camera = self.camera(image, stage.index)

            report.diagnostics.extend(randomize_positions(
                stage, records, camera, self.collisions, pos_rng, settings,
                config=self.config,
            ))
            self._run_procedures(stage, records, camera, proc_rng, settings)
            report.bound += apply_bindings(records, self.rules.bindings)

        self.codec.save_objects(image, stages, self.metadata)

    def camera(self, image: bytes | bytearray, stage_index: int) -> Rect:
        x, y = self.codec.initial_camera(bytes(image), stage_index, self.metadata)
        return Rect(x, y, self.metadata.camera_width, self.metadata.camera_height)

    def _run_procedures(
        self,
        stage: StageRules,
        records: list[ObjectRecord],
        camera: Rect,
        rng: random.Random,
        settings: Settings,
    ) -> None:
        for call in stage.procedures:
            if not settings.enabled(procedure_key(stage.name, call.name)):
                log.info("Stage %s: procedure %s switched off", stage.name, call.name)
                continue
            # Unknown procedures draw nothing from the stream.
            if call.name not in PROCEDURES:
                log.warning("Unrecognised procedure in stage %s: %s. Skipping.",
                            stage.name, call.name)
                continue
            run_call(call, ProcedureContext(
                stage=stage, records=records, args=call.args,
                camera=camera, rng=seeds.split(rng), config=self.config,
            ))
