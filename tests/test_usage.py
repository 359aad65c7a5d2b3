"""Tests for LLM usage parsing and ranking."""

from __future__ import annotations

import pytest

from nit_dashboard.aggregation.usage import (
    UsageBreakdownRow,
    UsageDailyPoint,
    UsageSummary,
    cost_by_provider,
    rank_breakdown,
)


def test_summary_from_api() -> None:
    summary = UsageSummary.from_api(
        {
            "totalRequests": 12,
            "totalTokens": "3400",
            "totalCostUsd": 1.25,
            "avgDurationMs": 820.5,
            "maxDurationMs": None,
        }
    )

    assert summary.total_requests == 12
    assert summary.total_tokens == 3400
    assert summary.total_cost_usd == pytest.approx(1.25)
    assert summary.avg_duration_ms == pytest.approx(820.5)
    assert summary.max_duration_ms is None


@pytest.mark.parametrize("raw", [None, [], "summary"])
def test_summary_from_missing_payload(raw: object) -> None:
    assert UsageSummary.from_api(raw) == UsageSummary()


def test_daily_point_requires_date() -> None:
    assert UsageDailyPoint.from_api({"totalRequests": 1}) is None
    point = UsageDailyPoint.from_api({"date": "2026-01-02", "totalCostUsd": "0.5"})

    assert point is not None
    assert point.total_cost_usd == pytest.approx(0.5)
    assert point.total_requests == 0


def test_breakdown_row_defaults_unknown_names() -> None:
    row = UsageBreakdownRow.from_api({"provider": "", "requests": 2})

    assert row is not None
    assert row.provider == "unknown"
    assert row.model == "unknown"
    assert row.requests == 2


def _row(provider: str, model: str, cost: float) -> UsageBreakdownRow:
    return UsageBreakdownRow(
        provider=provider, model=model, requests=1, tokens=10, total_cost_usd=cost
    )


def test_cost_by_provider_keeps_first_seen_order() -> None:
    rows = [
        _row("openai", "gpt-4o", 1.0),
        _row("anthropic", "claude", 2.0),
        _row("openai", "gpt-4o-mini", 0.5),
    ]

    assert cost_by_provider(rows) == [("openai", 1.5), ("anthropic", 2.0)]


def test_rank_breakdown_most_expensive_first() -> None:
    rows = [_row("a", "m1", 0.1), _row("b", "m2", 3.0), _row("c", "m3", 1.0)]

    assert [row.provider for row in rank_breakdown(rows)] == ["b", "c", "a"]
