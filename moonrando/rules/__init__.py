"""Rule tables — spawn regions, hitboxes, bindings and stage procedures.

Submodules:
  models      — typed rule records and the configuration errors
  predicates  — payload predicate compiler
  loader      — JSON parsing and validation
"""

from .models import (
    ValidationError, ConfigurationError,
    SpawnRef, SpawnCase, SpawnResolver,
    HitboxEntry, Direction, Binding,
    ProcedureCall, StageRules, RuleSet,
)
from .predicates import Predicate, compile_predicate
from .loader import (
    load_rules, parse_rules, parse_spawn_ref, parse_type, parse_direction,
)

__all__ = [
    # Models
    "ValidationError", "ConfigurationError",
    "SpawnRef", "SpawnCase", "SpawnResolver",
    "HitboxEntry", "Direction", "Binding",
    "ProcedureCall", "StageRules", "RuleSet",
    # Predicates
    "Predicate", "compile_predicate",
    # Loading
    "load_rules", "parse_rules", "parse_spawn_ref", "parse_type", "parse_direction",
]
