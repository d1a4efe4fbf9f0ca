"""
Structural diff between two JSON values.

DeepDiff's tree view is flattened into RawDiff entries:

    dictionary_item_removed  -> Delete
    dictionary_item_added    -> New
    iterable_item_removed    -> ArrayChange (item_kind=Delete)
    iterable_item_added      -> ArrayChange (item_kind=New)
    values_changed / type_changes on an array element -> ArrayChange (item_kind=Edit)
    values_changed / type_changes elsewhere           -> Edit
"""

from typing import Any, Iterable, List, Sequence

from deepdiff import DeepDiff
from deepdiff.helper import notpresent

from .logger import get_logger
from .models import RawDiff

logger = get_logger()

EDIT_REPORTS = ("values_changed", "type_changes")
KIND_ORDER = {"Delete": 0, "New": 1, "ArrayChange": 2, "Edit": 3}


def _value(v: Any) -> Any:
    return None if v is notpresent else v


def _is_index(element: Any) -> bool:
    # JSON object keys are always strings, so an int step is an array index.
    return isinstance(element, int) and not isinstance(element, bool)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _to_raw(report: str, level) -> RawDiff | None:
    path = tuple(level.path(output_format="list"))
    old, new = _value(level.t1), _value(level.t2)

    # 1 and 1.0 are the same JSON number.
    if report == "type_changes" and _is_number(old) and _is_number(new) and old == new:
        return None

    if report == "dictionary_item_removed":
        return RawDiff("Delete", path, old=old)
    if report == "dictionary_item_added":
        return RawDiff("New", path, new=new)
    if report == "iterable_item_removed":
        return RawDiff("ArrayChange", path, old=old, item_kind="Delete")
    if report == "iterable_item_added":
        return RawDiff("ArrayChange", path, new=new, item_kind="New")
    if report in EDIT_REPORTS:
        if path and _is_index(path[-1]):
            return RawDiff("ArrayChange", path, old=old, new=new, item_kind="Edit")
        return RawDiff("Edit", path, old=old, new=new)
    return None


def _sort_key(d: RawDiff):
    return (".".join(str(p) for p in d.path), KIND_ORDER[d.kind], d.item_kind or "")


def compute_diff(a: Any, b: Any) -> List[RawDiff]:
    """Return the raw differences between a and b in a stable order.

    Values DeepDiff cannot process produce no differences; the anomaly is
    logged instead of raised.
    """
    try:
        tree = DeepDiff(
            a,
            b,
            view="tree",
            # Always descend into objects; never collapse them into one edit.
            threshold_to_diff_deeper=0,
        )
    except Exception as e:
        logger.warning("Diff engine failed; reporting no differences", error=str(e))
        return []

    diffs: List[RawDiff] = []
    for report, levels in tree.items():
        for level in levels:
            raw = _to_raw(report, level)
            if raw is not None:
                diffs.append(raw)
    return sorted(diffs, key=_sort_key)


def is_ignored(path: Sequence[Any], ignore_paths: Iterable[str]) -> bool:
    """True when the dot-joined path starts with any ignore prefix."""
    dot_path = ".".join(str(p) for p in path)
    return any(dot_path.startswith(prefix) for prefix in ignore_paths)


def filter_ignored(diffs: Iterable[RawDiff], ignore_paths: Sequence[str]) -> List[RawDiff]:
    if not ignore_paths:
        return list(diffs)
    return [d for d in diffs if not is_ignored(d.path, ignore_paths)]
