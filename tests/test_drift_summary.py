"""Tests for drift summaries and the baseline overlay."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from nit_dashboard.aggregation.drift import (
    average_similarity,
    latest_per_test,
    merge_baselines,
    similarity_trend,
    summarize_drift,
)
from nit_dashboard.models.reports import DriftResult

DriftFactory = Callable[..., DriftResult]


@pytest.fixture
def results(drift_factory: DriftFactory) -> list[DriftResult]:
    """Newest first, as returned by the platform."""
    return [
        drift_factory(
            id="5",
            test_name="summary",
            status="drifted",
            similarity_score=0.6,
            created_at="2026-01-05T00:00:00Z",
        ),
        drift_factory(
            id="4",
            test_name="greeting",
            status="error",
            similarity_score=None,
            created_at="2026-01-04T00:00:00Z",
        ),
        drift_factory(
            id="3",
            test_name="summary",
            status="passed",
            similarity_score=0.9,
            created_at="2026-01-03T00:00:00Z",
        ),
        drift_factory(
            id="2",
            test_name="greeting",
            status="passed",
            similarity_score=1.0,
            created_at="2026-01-02T00:00:00Z",
        ),
    ]


def test_average_similarity_ignores_unscored(results: list[DriftResult]) -> None:
    assert average_similarity(results) == pytest.approx((0.6 + 0.9 + 1.0) / 3 * 100)


def test_average_similarity_empty() -> None:
    assert average_similarity([]) == 0.0


def test_similarity_trend_is_chronological(results: list[DriftResult]) -> None:
    trend = similarity_trend(results)

    assert [point.date for point in trend] == ["2026-01-02", "2026-01-03", "2026-01-05"]
    assert [point.similarity for point in trend] == pytest.approx([100.0, 90.0, 60.0])


def test_latest_per_test_sorted_by_name(results: list[DriftResult]) -> None:
    latest = latest_per_test(results)

    assert [(r.test_name, r.id) for r in latest] == [("greeting", "4"), ("summary", "5")]


def test_summarize_drift(results: list[DriftResult]) -> None:
    summary = summarize_drift(results)

    assert [r.id for r in summary.drifted] == ["5"]
    assert [r.id for r in summary.failed] == ["4"]
    assert [r.id for r in summary.alert_items] == ["5", "4"]


def test_merge_baselines_does_not_change_status(results: list[DriftResult]) -> None:
    rows = merge_baselines(results, {"summary": "2026-01-06T00:00:00+00:00"})

    by_name = {row.test_name: row for row in rows}
    assert by_name["summary"].baseline_accepted_at == "2026-01-06T00:00:00+00:00"
    assert by_name["summary"].result.status == "drifted"
    assert by_name["greeting"].baseline_accepted_at is None
