"""Group coverage reports into CI/CLI runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nit_dashboard.models.reports import CoverageReport

ROOT_PACKAGE_LABEL = "root"


@dataclass(frozen=True)
class RunGroup:
    """All reports sharing one ``run_id``.

    Representative fields (``run_mode``, ``branch``, ``commit_sha``,
    ``llm_model`` ...) come from the first report seen for the run and are
    not checked for consistency across the run.
    """

    run_id: str
    reports: tuple[CoverageReport, ...]
    created_at: str
    run_mode: str
    branch: str | None
    commit_sha: str | None
    total_tests: int
    total_passed: int
    total_failed: int
    avg_coverage: float
    """Mean of the non-null ``overall_coverage`` values, as a fraction."""

    llm_model: str | None
    llm_total_tokens: int
    execution_time_ms: float | None
    execution_environment: str | None


@dataclass(frozen=True)
class PackageOption:
    """A package id present in a report list, with its display label."""

    id: str | None
    label: str


def mean_coverage(reports: Iterable[CoverageReport]) -> float:
    """Mean ``overall_coverage`` over reports that have one, 0.0 if none do."""
    values = [r.overall_coverage for r in reports if r.overall_coverage is not None]
    return sum(values) / len(values) if values else 0.0


def group_by_run_id(reports: Iterable[CoverageReport]) -> list[RunGroup]:
    """Bucket reports by ``run_id`` and fold each bucket into a :class:`RunGroup`.

    Groups are returned in order of each run's first appearance in *reports*.
    """
    buckets: dict[str, list[CoverageReport]] = {}
    for report in reports:
        buckets.setdefault(report.run_id, []).append(report)

    groups: list[RunGroup] = []
    for run_id, run_reports in buckets.items():
        first = run_reports[0]
        groups.append(
            RunGroup(
                run_id=run_id,
                reports=tuple(run_reports),
                created_at=first.created_at,
                run_mode=first.run_mode,
                branch=first.branch,
                commit_sha=first.commit_sha,
                total_tests=sum(r.tests_generated for r in run_reports),
                total_passed=sum(r.tests_passed for r in run_reports),
                total_failed=sum(r.tests_failed for r in run_reports),
                avg_coverage=mean_coverage(run_reports),
                llm_model=first.llm_model,
                llm_total_tokens=sum(r.llm_total_tokens or 0 for r in run_reports),
                execution_time_ms=first.execution_time_ms,
                execution_environment=first.execution_environment,
            )
        )

    return groups


def unique_packages(reports: Iterable[CoverageReport]) -> list[PackageOption]:
    """Distinct package ids in first-seen order; ``None`` is labelled ``root``."""
    seen: dict[str | None, None] = {}
    for report in reports:
        seen.setdefault(report.package_id, None)

    return [PackageOption(id=pkg, label=pkg or ROOT_PACKAGE_LABEL) for pkg in seen]


def filter_by_package(
    reports: Iterable[CoverageReport], package_id: str | None
) -> list[CoverageReport]:
    """Keep reports for one package; ``None`` means no filter."""
    if package_id is None:
        return list(reports)
    return [r for r in reports if r.package_id == package_id]
