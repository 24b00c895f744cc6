from __future__ import annotations

from typing import Any
from uuid import uuid4

_MISSING = object()


def new_record_id() -> str:
    return str(uuid4())


def matches(record: dict[str, Any], column: str, value: Any) -> bool:
    """Strict equality filter: an absent column never matches, and booleans
    only ever equal booleans (``1`` does not match ``True``)."""

    candidate = record.get(column, _MISSING)
    if candidate is _MISSING:
        return False
    if isinstance(candidate, bool) or isinstance(value, bool):
        return isinstance(candidate, bool) and isinstance(value, bool) and candidate is value
    return bool(candidate == value)


def has_key_value(record: dict[str, Any], key: str) -> bool:
    value = record.get(key)
    return value is not None and value != ""
