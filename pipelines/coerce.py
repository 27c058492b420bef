"""Value coercion for loosely typed Strapi payloads."""

from __future__ import annotations

import math
from typing import Any, Mapping

_MISSING = (None, "")


def pick(data: Mapping[str, Any], *names: str) -> Any:
    """First value among ``names`` that is neither ``None`` nor an empty string."""

    for name in names:
        value = data.get(name)
        if value not in _MISSING:
            return value
    return None


def coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        try:
            numeric = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(numeric) or math.isinf(numeric):
        return None
    return numeric


def coerce_money(value: Any) -> float | None:
    numeric = coerce_float(value)
    if numeric is None or numeric < 0:
        return None
    return numeric


def coerce_int(value: Any) -> int | None:
    numeric = coerce_float(value)
    if numeric is None:
        return None
    return int(numeric)


def coerce_str(value: Any) -> str | None:
    if value in _MISSING or isinstance(value, (Mapping, list, tuple, bool)):
        return None
    text = str(value).strip()
    return text or None


def coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
        return None
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def unwrap_entity(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the field mapping of a v4 ``attributes`` envelope or a v5 record."""

    attributes = raw.get("attributes")
    if isinstance(attributes, Mapping) and attributes:
        return attributes
    return raw


def relation_fields(value: Any) -> tuple[Mapping[str, Any], Any] | None:
    """Resolve a sub-record given flat (v5) or relational (v4 ``data``) shape.

    Returns the field mapping and the related entity id, or ``None`` when the
    value is not a mapping at all.
    """

    if not isinstance(value, Mapping):
        return None
    related = value.get("data")
    if isinstance(related, Mapping) and set(value) <= {"data", "meta"}:
        return unwrap_entity(related), related.get("id")
    return value, value.get("id")


__all__ = [
    "coerce_bool",
    "coerce_float",
    "coerce_int",
    "coerce_money",
    "coerce_str",
    "pick",
    "relation_fields",
    "unwrap_entity",
]
