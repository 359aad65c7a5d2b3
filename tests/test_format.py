"""Tests for display formatting helpers."""

from __future__ import annotations

import math

import pytest

from nit_dashboard.utils.format import (
    compact_tokens,
    group_by_date,
    to_currency,
    to_date_time,
    to_day,
    to_number,
    to_percent,
    to_percent_number,
    truncate,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.873, "87.3%"), (1, "100.0%"), (None, "n/a"), (math.nan, "n/a")],
)
def test_to_percent(value: float | None, expected: str) -> None:
    assert to_percent(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.5, 50.0), (None, 0.0), (1.7, 100.0), (-0.2, 0.0), (math.inf, 0.0)],
)
def test_to_percent_number(value: float | None, expected: float) -> None:
    assert to_percent_number(value) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2, "$2.00"), (1234.5, "$1,234.50"), (0.1234, "$0.1234"), (None, "$0.00")],
)
def test_to_currency(value: float | None, expected: str) -> None:
    assert to_currency(value) == expected


def test_to_number() -> None:
    assert to_number(1234) == "1,234"
    assert to_number(1.5) == "1.5"
    assert to_number(None) == "0"


@pytest.mark.parametrize(
    ("count", "expected"), [(999, "999"), (3400, "3.4k"), (1_500_000, "1.5M")]
)
def test_compact_tokens(count: int, expected: str) -> None:
    assert compact_tokens(count) == expected


def test_to_day() -> None:
    assert to_day("2026-01-05T15:04:00Z") == "2026-01-05"


def test_to_date_time() -> None:
    assert to_date_time("2026-01-05T15:04:00") == "Jan 5, 2026 3:04 PM"
    assert to_date_time("2026-01-05T00:30:00") == "Jan 5, 2026 12:30 AM"
    assert to_date_time(None) == "n/a"
    assert to_date_time("yesterday") == "yesterday"


def test_truncate() -> None:
    assert truncate("abcdef", 4) == "abc…"
    assert truncate("abc", 4) == "abc"
    assert truncate(None) == ""


def test_group_by_date_sums_per_day() -> None:
    entries = [
        ("2026-01-02T10:00:00Z", 2.0),
        ("2026-01-01T10:00:00Z", 1.0),
        ("2026-01-02T23:00:00Z", 0.5),
    ]

    totals = group_by_date(entries, lambda e: e[0], lambda e: e[1])

    assert totals == [("2026-01-01", 1.0), ("2026-01-02", 2.5)]


def test_group_by_date_counts_by_default() -> None:
    assert group_by_date(["2026-01-01", "2026-01-01"], lambda e: e) == [("2026-01-01", 2)]
