"""Cross-project overview: latest run per project and health status."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nit_dashboard.models.reports import CoverageReport, Project


@dataclass(frozen=True)
class HealthStatus:
    label: str
    tone: str
    """``good``, ``warn``, ``danger`` or ``neutral``."""


@dataclass(frozen=True)
class PortfolioSummary:
    """Totals across every project the user can see."""

    projects: int
    total_runs: int
    total_bugs: int
    total_issues: int
    total_prs: int
    total_tokens: int


def last_report_by_project(reports: Iterable[CoverageReport]) -> dict[str, CoverageReport]:
    """Newest report (by ``created_at``) for each project."""
    latest: dict[str, CoverageReport] = {}
    for report in reports:
        current = latest.get(report.project_id)
        if current is None or current.created_at < report.created_at:
            latest[report.project_id] = report
    return latest


def health_status(report: CoverageReport | None, open_bugs: int) -> HealthStatus:
    """Classify a project from its latest report and open bug count."""
    if report is None:
        return HealthStatus(label="No runs", tone="neutral")
    if report.tests_failed > 0:
        return HealthStatus(label="Needs attention", tone="warn")
    if open_bugs > 0:
        return HealthStatus(label="Open bugs", tone="warn")
    return HealthStatus(label="Healthy", tone="good")


def portfolio_summary(projects: Iterable[Project]) -> PortfolioSummary:
    items = list(projects)
    return PortfolioSummary(
        projects=len(items),
        total_runs=sum(p.total_runs for p in items),
        total_bugs=sum(p.detected_bugs for p in items),
        total_issues=sum(p.created_issues for p in items),
        total_prs=sum(p.created_prs for p in items),
        total_tokens=sum(p.total_tokens for p in items),
    )
