"""Stage procedures — fix-ups executed after positions are randomized.

Each procedure declares the stage indices it supports and parses its
arguments into a typed record when the rules are loaded, so a bad
argument fails before any run starts.
"""

from __future__ import annotations

import logging

from moonrando.rules.models import ProcedureCall, StageRules

from .base import Procedure, ProcedureContext, ObjectTypes, get_u16, put_u16
from . import caves, doors, teleporters


log = logging.getLogger(__name__)


PROCEDURES: dict[str, Procedure] = {
    p.name: p for p in (caves.PROCEDURE, doors.PROCEDURE, teleporters.PROCEDURE)
}


def parse_call(name: str, raw_args: dict, stage: StageRules) -> ProcedureCall:
    """Validate a procedure call for *stage*; raises ValueError when invalid.

    Unknown procedure names are kept with their raw arguments and skipped
    at run time.
    """
    proc = PROCEDURES.get(name)
    if proc is None:
        log.warning("Stage %s: unknown procedure '%s' will be skipped", stage.name, name)
        return ProcedureCall(name, raw_args)
    if stage.index not in proc.stage_indices:
        raise ValueError(
            f"'{name}' cannot run on stage index {stage.index:#x} "
            f"(supports {proc.stage_indices.start:#x}..{proc.stage_indices.stop - 1:#x})")
    return ProcedureCall(name, proc.parse_args(raw_args, stage))


def run_call(call: ProcedureCall, ctx: ProcedureContext) -> bool:
    """Run one call; returns False when the procedure is unknown."""
    proc = PROCEDURES.get(call.name)
    if proc is None:
        log.warning("Unrecognised procedure in stage %s: %s. Skipping.",
                    ctx.stage.name, call.name)
        return False
    proc.run(ctx)
    return True


__all__ = [
    "PROCEDURES", "Procedure", "ProcedureContext", "ObjectTypes",
    "parse_call", "run_call", "get_u16", "put_u16",
]
