"""Defensive field extraction from untyped JSON payloads.

Report bodies, memory blobs and API records are versioned independently of
this package, so nothing here assumes a fixed schema. Every helper returns
``None`` (or an empty list) when a value is missing or has the wrong type;
none of them raise.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def as_record(value: Any) -> dict[str, Any] | None:
    """Return *value* as a string-keyed mapping, or ``None`` if it is not an object."""
    if isinstance(value, dict):
        return cast("dict[str, Any]", value)
    return None


def numeric_from_unknown(value: Any) -> float | None:
    """Extract a finite number from *value*.

    Numbers are accepted directly; non-empty strings are parsed. Booleans,
    ``NaN``, infinities, lists and objects yield ``None``.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int | float):
        number = float(value)
        return number if math.isfinite(number) else None

    if isinstance(value, str):
        text = value.strip()
        # float() accepts digit separators, JSON producers never emit them
        if not text or "_" in text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None

    return None


def string_from_unknown(value: Any) -> str | None:
    """Return *value* if it is a non-empty string, else ``None``."""
    if isinstance(value, str) and value:
        return value
    return None


def list_from_unknown(value: Any) -> list[str]:
    """Return the trimmed, non-empty strings of a JSON array.

    Non-list inputs and non-string members are ignored.
    """
    if not isinstance(value, list):
        return []

    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def first_present(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first value under *keys* that is not ``None``."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def first_numeric(record: Mapping[str, Any], keys: Iterable[str]) -> float | None:
    """Return the first value under *keys* that normalizes to a number."""
    for key in keys:
        number = numeric_from_unknown(record.get(key))
        if number is not None:
            return number
    return None


def unique_in_order(items: Iterable[str]) -> list[str]:
    """De-duplicate *items* while keeping first-seen order."""
    return list(dict.fromkeys(items))
