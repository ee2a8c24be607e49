"""Deep comparison of phase payloads.

``find_changed_fields`` walks two JSON values and reports one change per
differing leaf, addressed by a dotted path. Lists are treated as atomic
values: a list that differs anywhere is reported once, as a whole.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any


def _same_kind(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool)
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return True
    return type(a) is type(b)


def find_changed_fields(old: Any, new: Any, path: str = "") -> List[FieldChange]:
    """List the fields that differ between ``old`` and ``new``.

    Args:
        old: Previous JSON value
        new: New JSON value
        path: Dotted path of the values being compared

    Returns:
        One ``FieldChange`` per differing field. A key present on only one
        side is reported with ``None`` for the missing side.
    """
    if old is None or new is None or not _same_kind(old, new):
        if old is None and new is None:
            return []
        return [FieldChange(path or "root", old, new)]

    if isinstance(old, dict):
        changes: List[FieldChange] = []
        for key in list(old) + [k for k in new if k not in old]:
            field_path = f"{path}.{key}" if path else str(key)
            if key not in new:
                changes.append(FieldChange(field_path, old[key], None))
            elif key not in old:
                changes.append(FieldChange(field_path, None, new[key]))
            else:
                changes.extend(find_changed_fields(old[key], new[key], field_path))
        return changes

    if isinstance(old, list):
        # serialized so that True, 1 and 1.0 inside a list stay distinct
        if json.dumps(old) != json.dumps(new):
            return [FieldChange(path or "array", old, new)]
        return []

    if old != new:
        return [FieldChange(path or "value", old, new)]
    return []


def has_significant_changes(old: Any, new: Any) -> bool:
    """True when at least one change is more than a short string tweak.

    A change counts when its new value is not a string, or is a string
    longer than 10 characters.
    """
    changes = find_changed_fields(old, new)
    if not changes:
        return False
    return any(not isinstance(c.new_value, str) or len(c.new_value) > 10 for c in changes)
