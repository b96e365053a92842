"""Payload predicates — small boolean expressions over an object's data bytes.

Expression format (JSON)::

    {"dataEquals":    {"index": 2, "value": 12}}
    {"dataEqualsHex": {"index": 2, "value": "0C"}}
    {"const": true}
    {"and": [expr, ...]}   {"or": [expr, ...]}   {"xor": [expr, ...]}
    {"not": expr}
    [expr, ...]                                  # implicit "and"

Compilation happens once, at rule-load time; malformed expressions raise
``ValueError``.
"""

from __future__ import annotations

from functools import reduce
from typing import Any, Callable

Predicate = Callable[[bytes], bool]


def compile_predicate(expr: Any) -> Predicate:
    if isinstance(expr, list):
        return _combine([compile_predicate(e) for e in expr], "and")
    if not isinstance(expr, dict) or len(expr) != 1:
        raise ValueError(f"Predicate must be a list or a single-key object, got {expr!r}")

    (op, arg), = expr.items()
    op = op.lower()

    if op in ("dataequals", "dataequalshex"):
        index = int(arg["index"])
        raw = arg["value"]
        value = int(raw, 16) if op == "dataequalshex" else int(raw)
        if index < 0:
            raise ValueError(f"{op}: index must be >= 0, got {index}")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"{op}: value must be a byte, got {value}")
        return _data_equals(index, value)

    if op == "const":
        if not isinstance(arg, bool):
            raise ValueError(f"const: expected true/false, got {arg!r}")
        return (lambda data: True) if arg else (lambda data: False)

    if op in ("and", "or", "xor"):
        if not isinstance(arg, list):
            raise ValueError(f"{op}: expected a list of operands")
        return _combine([compile_predicate(e) for e in arg], op)

    if op == "not":
        if isinstance(arg, list):
            if len(arg) != 1:
                raise ValueError(f"not: expected exactly one operand, got {len(arg)}")
            arg = arg[0]
        inner = compile_predicate(arg)
        return lambda data: not inner(data)

    raise ValueError(f"Unknown predicate operator '{op}'")


def _data_equals(index: int, value: int) -> Predicate:
    def check(data: bytes) -> bool:
        # A payload too short for the index simply does not match.
        return index < len(data) and data[index] == value
    return check


def _combine(preds: list[Predicate], op: str) -> Predicate:
    if not preds:
        raise ValueError(f"Empty predicate expression ({op})")
    if len(preds) == 1:
        return preds[0]
    if op == "and":
        return lambda data: all(p(data) for p in preds)
    if op == "or":
        return lambda data: any(p(data) for p in preds)
    return lambda data: reduce(lambda acc, p: acc != p(data), preds, False)
