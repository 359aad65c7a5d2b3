"""Display formatting helpers shared by views and reporters."""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

T = TypeVar("T")

_THOUSAND = 1_000
_MILLION = 1_000_000
_DEFAULT_TRUNCATE = 120
_NOON = 12


def _is_number(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def to_percent(value: float | None) -> str:
    """Format a 0..1 fraction as ``"87.3%"``; missing values render as ``n/a``."""
    if value is None or not _is_number(value):
        return "n/a"
    return f"{value * 100:.1f}%"


def to_percent_number(value: float | None) -> float:
    """Convert a 0..1 fraction to a clamped 0..100 percent; missing values are 0."""
    if value is None or not _is_number(value):
        return 0.0
    return max(0.0, min(100.0, value * 100))


def to_currency(value: float | None) -> str:
    """Format a USD amount with 2 to 4 decimals."""
    if value is None or not _is_number(value):
        return "$0.00"
    text = f"{value:,.4f}".rstrip("0")
    whole, _, decimals = text.partition(".")
    return f"${whole}.{decimals.ljust(2, '0')}"


def to_number(value: float | None) -> str:
    """Format a count with thousands separators."""
    if value is None or not _is_number(value):
        return "0"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def compact_tokens(count: int) -> str:
    """Abbreviate token counts: ``1.2M``, ``3.4k``."""
    if count >= _MILLION:
        return f"{count / _MILLION:.1f}M"
    if count >= _THOUSAND:
        return f"{count / _THOUSAND:.1f}k"
    return str(count)


def to_day(timestamp: str) -> str:
    """Truncate an ISO timestamp to its ``YYYY-MM-DD`` day."""
    return timestamp[:10]


def to_date_time(value: str | None) -> str:
    """Render an ISO timestamp as ``Jan 5, 2026 3:04 PM``."""
    if not value:
        return "n/a"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    hour = parsed.hour % _NOON or _NOON
    suffix = "AM" if parsed.hour < _NOON else "PM"
    return f"{parsed:%b} {parsed.day}, {parsed.year} {hour}:{parsed:%M} {suffix}"


def truncate(text: str | None, max_length: int = _DEFAULT_TRUNCATE) -> str:
    """Shorten *text* to *max_length* characters with a trailing ellipsis."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return f"{text[: max_length - 1]}…"


def group_by_date(
    entries: Iterable[T],
    get_date: Callable[[T], str],
    get_value: Callable[[T], float] = lambda _entry: 1,
) -> list[tuple[str, float]]:
    """Sum *get_value* per calendar day, in ascending date order."""
    totals: dict[str, float] = {}
    for entry in entries:
        day = to_day(get_date(entry))
        totals[day] = totals.get(day, 0) + get_value(entry)
    return sorted(totals.items())
