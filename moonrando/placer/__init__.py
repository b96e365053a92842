"""Placer — scatters object records inside their spawn regions.

Submodules:
  models      ObjectRecord, Container and the PlacementExhausted diagnostic.
  collision   Hitbox lookup and directed overlap checks.
  engine      Sampling, seam snapping, retries, container classification.
  merge       Rejoins records stored as misaligned duplicates.
"""

from .models import Container, ObjectRecord, PlacementExhausted
from .collision import CollisionIndex
from .engine import place_object, randomize_positions, snap_to_seam, classify_container
from .merge import merge_misalignments

__all__ = [
    # Models
    "Container", "ObjectRecord", "PlacementExhausted",
    # Collision
    "CollisionIndex",
    # Engine
    "place_object", "randomize_positions", "snap_to_seam", "classify_container",
    # Merge
    "merge_misalignments",
]
