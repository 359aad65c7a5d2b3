"""Per-package coverage and pass-rate rollups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nit_dashboard.aggregation.runs import ROOT_PACKAGE_LABEL

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nit_dashboard.models.reports import CoverageReport


@dataclass(frozen=True)
class PackageSummary:
    """Rollup of every report for one package."""

    package_id: str
    reports: int
    avg_coverage: float
    """Percent (0..100) over reports with coverage data."""

    pass_rate: float
    """``tests_passed / tests_generated * 100``, 0 when nothing was generated."""


@dataclass
class _PackageTotals:
    coverage_sum: float = 0.0
    coverage_count: int = 0
    passed: int = 0
    generated: int = 0
    reports: int = 0


def package_breakdown(reports: Iterable[CoverageReport]) -> list[PackageSummary]:
    """Group reports by package and rank packages by coverage, best first.

    Reports with no ``package_id`` are grouped under ``"root"``.
    """
    totals: dict[str, _PackageTotals] = {}
    for report in reports:
        entry = totals.setdefault(report.package_id or ROOT_PACKAGE_LABEL, _PackageTotals())
        if report.overall_coverage is not None:
            entry.coverage_sum += report.overall_coverage
            entry.coverage_count += 1
        entry.passed += report.tests_passed
        entry.generated += report.tests_generated
        entry.reports += 1

    summaries = [
        PackageSummary(
            package_id=package_id,
            reports=entry.reports,
            avg_coverage=(
                entry.coverage_sum / entry.coverage_count * 100 if entry.coverage_count else 0.0
            ),
            pass_rate=entry.passed / entry.generated * 100 if entry.generated > 0 else 0.0,
        )
        for package_id, entry in totals.items()
    ]
    summaries.sort(key=lambda summary: summary.avg_coverage, reverse=True)
    return summaries
