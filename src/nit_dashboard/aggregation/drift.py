"""Drift-check summaries and baseline overlay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nit_dashboard.utils.format import to_day

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from nit_dashboard.models.reports import DriftResult

STATUS_DRIFTED = "drifted"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class SimilarityPoint:
    """Similarity of one scored drift result, as a percentage."""

    date: str
    similarity: float


@dataclass(frozen=True)
class DriftRow:
    """Latest result for a drift test, annotated with its accepted baseline.

    The baseline is informational only and never changes ``result.status``.
    """

    result: DriftResult
    baseline_accepted_at: str | None

    @property
    def test_name(self) -> str:
        return self.result.test_name


@dataclass(frozen=True)
class DriftSummary:
    """Everything the drift view derives from a newest-first result list."""

    drifted: list[DriftResult]
    failed: list[DriftResult]
    avg_similarity: float
    """Percent over results that carry a similarity score, 0 if none do."""

    similarity_trend: list[SimilarityPoint]
    latest_per_test: list[DriftResult]
    alert_items: list[DriftResult]


def average_similarity(results: Sequence[DriftResult]) -> float:
    scored = [r.similarity_score for r in results if r.similarity_score is not None]
    if not scored:
        return 0.0
    return sum(scored) / len(scored) * 100


def similarity_trend(results: Sequence[DriftResult]) -> list[SimilarityPoint]:
    """Chronological similarity series over scored results."""
    return [
        SimilarityPoint(date=to_day(r.created_at), similarity=r.similarity_score * 100)
        for r in reversed(results)
        if r.similarity_score is not None
    ]


def latest_per_test(results: Sequence[DriftResult]) -> list[DriftResult]:
    """First (newest) result of each test, sorted by test name."""
    latest: dict[str, DriftResult] = {}
    for result in results:
        latest.setdefault(result.test_name, result)
    return sorted(latest.values(), key=lambda r: r.test_name)


def summarize_drift(results: Sequence[DriftResult]) -> DriftSummary:
    """Derive the drift view from results ordered newest first."""
    drifted = [r for r in results if r.status == STATUS_DRIFTED]
    failed = [r for r in results if r.status == STATUS_ERROR]
    alerts = sorted([*drifted, *failed], key=lambda r: r.created_at, reverse=True)

    return DriftSummary(
        drifted=drifted,
        failed=failed,
        avg_similarity=average_similarity(results),
        similarity_trend=similarity_trend(results),
        latest_per_test=latest_per_test(results),
        alert_items=alerts,
    )


def merge_baselines(
    results: Sequence[DriftResult], baselines: Mapping[str, str]
) -> list[DriftRow]:
    """Attach accepted-baseline timestamps to the latest result of each test."""
    return [
        DriftRow(result=result, baseline_accepted_at=baselines.get(result.test_name))
        for result in latest_per_test(results)
    ]
