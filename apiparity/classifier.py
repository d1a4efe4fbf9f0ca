"""
Severity, change type and priority for raw structural diffs.

Priorities (higher = more consequential):

    10  field deleted
     8  field added
     7  array element removed
     6  array element added
     5  array element changed between container and scalar
     4  scalar edit that changes JSON type
     2  same-type non-numeric edit / other array element edit
     1  numeric edit

Numeric-to-numeric edits are Warnings; everything else is an Error.
"""

from typing import Any, Iterable, List

from .models import DiffEntry, RawDiff

ERROR = "Error"
WARNING = "Warning"
STRUCTURAL = "structural"
VALUE = "value"


def json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_numeric(value: Any) -> bool:
    return json_type(value) == "number"


def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _entry(raw: RawDiff, severity: str, change_type: str, priority: int) -> DiffEntry:
    return DiffEntry(
        kind=raw.kind,
        path=raw.path,
        old=raw.old,
        new=raw.new,
        severity=severity,
        change_type=change_type,
        priority=priority,
        item_kind=raw.item_kind,
    )


def _classify_edit(raw: RawDiff) -> DiffEntry:
    old, new = raw.old, raw.new
    if is_numeric(old) and is_numeric(new):
        return _entry(raw, WARNING, VALUE, 1)
    if json_type(old) != json_type(new):
        change = STRUCTURAL if is_container(old) != is_container(new) else VALUE
        return _entry(raw, ERROR, change, 4)
    return _entry(raw, ERROR, VALUE, 2)


def _classify_array(raw: RawDiff) -> DiffEntry:
    if raw.item_kind == "Delete":
        return _entry(raw, ERROR, STRUCTURAL, 7)
    if raw.item_kind == "New":
        return _entry(raw, ERROR, STRUCTURAL, 6)

    old, new = raw.old, raw.new
    severity = WARNING if is_numeric(old) and is_numeric(new) else ERROR
    if is_container(old) != is_container(new):
        return _entry(raw, severity, STRUCTURAL, 5)
    return _entry(raw, severity, VALUE, 2)


def classify(raw: RawDiff) -> DiffEntry:
    """Classify one raw diff. Pure: the same input always yields the same entry."""
    if raw.kind == "Delete":
        return _entry(raw, ERROR, STRUCTURAL, 10)
    if raw.kind == "New":
        return _entry(raw, ERROR, STRUCTURAL, 8)
    if raw.kind == "ArrayChange":
        return _classify_array(raw)
    if raw.kind == "Edit":
        return _classify_edit(raw)
    raise ValueError(f"Unknown diff kind: {raw.kind!r}")


def classify_all(diffs: Iterable[RawDiff]) -> List[DiffEntry]:
    return [classify(d) for d in diffs]
