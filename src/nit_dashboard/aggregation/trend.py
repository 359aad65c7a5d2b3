"""Coverage time series and headline coverage figures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nit_dashboard.utils.format import to_day, to_percent_number

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nit_dashboard.models.reports import CoverageReport

# Reports considered for the unit/integration/e2e breakdown
_TYPE_BREAKDOWN_WINDOW = 20
_MIN_REPORTS_FOR_DELTA = 2


@dataclass(frozen=True)
class TrendPoint:
    """One report plotted on the coverage chart."""

    date: str
    coverage: float
    """Percent (0..100); reports without coverage plot as 0."""

    tests_passed: int
    tests_failed: int


@dataclass(frozen=True)
class CoverageTypeBreakdown:
    """Mean coverage percent per test type; ``None`` when no report has the value."""

    unit: float | None
    integration: float | None
    e2e: float | None

    @property
    def has_data(self) -> bool:
        return self.unit is not None or self.integration is not None or self.e2e is not None


def build_trend(reports: Sequence[CoverageReport]) -> list[TrendPoint]:
    """Turn a newest-first report list into a chronological series.

    Each report becomes its own point: several reports on the same day are
    not merged.
    """
    return [
        TrendPoint(
            date=to_day(report.created_at),
            coverage=to_percent_number(report.overall_coverage),
            tests_passed=report.tests_passed,
            tests_failed=report.tests_failed,
        )
        for report in reversed(reports)
    ]


def coverage_delta(reports: Sequence[CoverageReport]) -> float:
    """Percent-point change between the newest report and the one before it."""
    if len(reports) < _MIN_REPORTS_FOR_DELTA:
        return 0.0
    return to_percent_number(reports[0].overall_coverage) - to_percent_number(
        reports[1].overall_coverage
    )


def _mean_percent(values: list[float | None]) -> float | None:
    present = [value * 100 for value in values if value is not None]
    return sum(present) / len(present) if present else None


def coverage_type_breakdown(reports: Sequence[CoverageReport]) -> CoverageTypeBreakdown:
    """Average unit/integration/e2e coverage over the most recent reports."""
    window = reports[:_TYPE_BREAKDOWN_WINDOW]
    return CoverageTypeBreakdown(
        unit=_mean_percent([r.unit_coverage for r in window]),
        integration=_mean_percent([r.integration_coverage for r in window]),
        e2e=_mean_percent([r.e2e_coverage for r in window]),
    )
