"""Evaluate the index metadata filter dialect against a metadata dict."""
from __future__ import annotations

from typing import Any, Mapping


def _values(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _check(value: Any, condition: Any) -> bool:
    if not isinstance(condition, Mapping):
        return condition in _values(value)
    for operator, operand in condition.items():
        if operator == "$eq":
            ok = operand in _values(value)
        elif operator == "$ne":
            ok = operand not in _values(value)
        elif operator == "$in":
            ok = any(item in operand for item in _values(value))
        elif operator == "$nin":
            ok = not any(item in operand for item in _values(value))
        else:
            raise ValueError(f"Unsupported filter operator '{operator}'")
        if not ok:
            return False
    return True


def matches_filter(metadata: Mapping[str, Any], metadata_filter: Mapping[str, Any] | None) -> bool:
    """Return True when `metadata` satisfies every clause of the filter."""

    if not metadata_filter:
        return True
    for key, condition in metadata_filter.items():
        if key == "$or":
            if not any(matches_filter(metadata, clause) for clause in condition):
                return False
        elif key == "$and":
            if not all(matches_filter(metadata, clause) for clause in condition):
                return False
        elif not _check(metadata.get(key), condition):
            return False
    return True


__all__ = ["matches_filter"]
