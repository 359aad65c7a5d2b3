"""Per-view loaders.

Each ``load_*`` coroutine fetches what one dashboard view needs and folds it
through the aggregation functions. Blocking HTTP calls run in worker threads;
independent fetches run concurrently. Platform errors propagate as
:class:`~nit_dashboard.utils.platform_client.PlatformApiError` so that a
:class:`~nit_dashboard.lifecycle.LoadScope` can turn them into an error state.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from nit_dashboard.aggregation.bugs import BugSummary, open_bug_counts, summarize_bugs
from nit_dashboard.aggregation.drift import DriftRow, DriftSummary, summarize_drift
from nit_dashboard.aggregation.heatmap import FileHeatPoint, extract_file_heatmap
from nit_dashboard.aggregation.overview import (
    HealthStatus,
    PortfolioSummary,
    health_status,
    last_report_by_project,
    portfolio_summary,
)
from nit_dashboard.aggregation.packages import PackageSummary, package_breakdown
from nit_dashboard.aggregation.prs import PRGroup, group_by_pr
from nit_dashboard.aggregation.runs import (
    PackageOption,
    RunGroup,
    filter_by_package,
    group_by_run_id,
    unique_packages,
)
from nit_dashboard.aggregation.security import (
    RiskScore,
    RiskSummary,
    SecuritySummary,
    group_findings_by_severity,
)
from nit_dashboard.aggregation.trend import (
    CoverageTypeBreakdown,
    TrendPoint,
    build_trend,
    coverage_delta,
    coverage_type_breakdown,
)
from nit_dashboard.aggregation.usage import (
    UsageBreakdownRow,
    UsageDailyPoint,
    UsageSummary,
    cost_by_provider,
    rank_breakdown,
)
from nit_dashboard.utils.format import to_percent_number
from nit_dashboard.utils.platform_client import DEFAULT_REPORT_LIMIT, DEFAULT_WINDOW_DAYS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nit_dashboard.memory.baselines import BaselineStore
    from nit_dashboard.models.reports import (
        CoverageReport,
        DriftTimelinePoint,
        Project,
        SecurityFinding,
    )
    from nit_dashboard.utils.platform_client import PlatformApiClient

PR_REPORT_LIMIT = 500
OVERVIEW_LIMIT = 300
SECURITY_FINDING_LIMIT = 200
RISK_FILE_LIMIT = 100


# ── Coverage ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CoverageView:
    latest_coverage: float | None
    """Percent coverage of the newest report; ``None`` without reports."""

    previous_coverage: float | None
    delta: float
    trend: list[TrendPoint]
    packages: list[PackageSummary]
    heatmap: list[FileHeatPoint]
    type_breakdown: CoverageTypeBreakdown
    report_count: int


def build_coverage_view(reports: Sequence[CoverageReport], full_report: Any) -> CoverageView:
    """Fold newest-first reports and the newest full report into the coverage view."""
    latest = reports[0] if reports else None
    previous = reports[1] if len(reports) > 1 else None

    return CoverageView(
        latest_coverage=to_percent_number(latest.overall_coverage) if latest else None,
        previous_coverage=to_percent_number(previous.overall_coverage) if previous else None,
        delta=coverage_delta(reports),
        trend=build_trend(reports),
        packages=package_breakdown(reports),
        heatmap=extract_file_heatmap(full_report),
        type_breakdown=coverage_type_breakdown(reports),
        report_count=len(reports),
    )


async def load_coverage_view(
    client: PlatformApiClient, project_id: str, *, limit: int = DEFAULT_REPORT_LIMIT
) -> CoverageView:
    reports = await asyncio.to_thread(client.list_reports, project_id, limit=limit)

    full_report: Any = None
    if reports:
        detail = await asyncio.to_thread(client.get_report, reports[0].id, include_full=True)
        full_report = detail.get("fullReport")

    return build_coverage_view(reports, full_report)


# ── Runs & pull requests ─────────────────────────────────────────────


@dataclass(frozen=True)
class RunsView:
    runs: list[RunGroup]
    packages: list[PackageOption]
    selected_package: str | None


def build_runs_view(
    reports: Sequence[CoverageReport], package_id: str | None = None
) -> RunsView:
    return RunsView(
        runs=group_by_run_id(filter_by_package(reports, package_id)),
        packages=unique_packages(reports),
        selected_package=package_id,
    )


async def load_runs_view(
    client: PlatformApiClient,
    project_id: str,
    *,
    package_id: str | None = None,
    limit: int = DEFAULT_REPORT_LIMIT,
) -> RunsView:
    reports = await asyncio.to_thread(client.list_reports, project_id, limit=limit)
    return build_runs_view(reports, package_id)


async def load_pr_groups(
    client: PlatformApiClient, project_id: str, *, limit: int = PR_REPORT_LIMIT
) -> list[PRGroup]:
    reports = await asyncio.to_thread(client.list_reports, project_id, limit=limit)
    return group_by_pr(reports)


# ── Bugs & drift ─────────────────────────────────────────────────────


async def load_bug_summary(client: PlatformApiClient, project_id: str) -> BugSummary:
    bugs = await asyncio.to_thread(client.list_bugs, project_id)
    return summarize_bugs(bugs)


@dataclass(frozen=True)
class DriftView:
    summary: DriftSummary
    rows: list[DriftRow]
    """Latest result per test with its accepted baseline, if any."""

    timeline: list[DriftTimelinePoint]


async def load_drift_view(
    client: PlatformApiClient, project_id: str, baselines: BaselineStore
) -> DriftView:
    results, timeline = await asyncio.gather(
        asyncio.to_thread(client.list_drift, project_id),
        asyncio.to_thread(client.drift_timeline, project_id),
    )
    return DriftView(
        summary=summarize_drift(results),
        rows=baselines.merge(results),
        timeline=timeline,
    )


# ── Security ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SecurityView:
    findings: list[SecurityFinding]
    by_severity: dict[str, list[SecurityFinding]]
    risk_files: list[RiskScore]
    summary: SecuritySummary
    risk: RiskSummary

    @property
    def is_empty(self) -> bool:
        return not self.findings and not self.risk.top_risky_files


async def load_security_view(client: PlatformApiClient, project_id: str) -> SecurityView:
    """Fetch findings, risk files and both summaries concurrently.

    Any failed fetch fails the whole view.
    """
    findings, risk_files, summary, risk = await asyncio.gather(
        asyncio.to_thread(
            client.list_security_findings, project_id, limit=SECURITY_FINDING_LIMIT
        ),
        asyncio.to_thread(client.list_risk_scores, project_id, limit=RISK_FILE_LIMIT),
        asyncio.to_thread(client.security_summary, project_id),
        asyncio.to_thread(client.risk_summary, project_id),
    )
    return SecurityView(
        findings=findings,
        by_severity=group_findings_by_severity(findings),
        risk_files=risk_files,
        summary=summary,
        risk=risk,
    )


# ── Overview & usage ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ProjectOverviewRow:
    project: Project
    latest_report: CoverageReport | None
    open_bugs: int
    health: HealthStatus


@dataclass(frozen=True)
class OverviewView:
    rows: list[ProjectOverviewRow]
    summary: PortfolioSummary


def build_overview(
    projects: Sequence[Project],
    reports: Sequence[CoverageReport],
    bug_counts: dict[str, int],
) -> OverviewView:
    latest = last_report_by_project(reports)
    rows = [
        ProjectOverviewRow(
            project=project,
            latest_report=latest.get(project.id),
            open_bugs=bug_counts.get(project.id, 0),
            health=health_status(latest.get(project.id), bug_counts.get(project.id, 0)),
        )
        for project in projects
    ]
    return OverviewView(rows=rows, summary=portfolio_summary(projects))


async def load_overview(client: PlatformApiClient) -> OverviewView:
    projects, reports, bugs = await asyncio.gather(
        asyncio.to_thread(client.list_projects),
        asyncio.to_thread(client.list_reports, None, limit=OVERVIEW_LIMIT),
        asyncio.to_thread(client.list_bugs, None, limit=OVERVIEW_LIMIT),
    )
    return build_overview(projects, reports, open_bug_counts(bugs))


@dataclass(frozen=True)
class UsageView:
    summary: UsageSummary
    daily: list[UsageDailyPoint]
    breakdown: list[UsageBreakdownRow]
    """Sorted by spend, most expensive first."""

    cost_by_provider: list[tuple[str, float]]


async def load_usage_view(
    client: PlatformApiClient,
    project_id: str | None = None,
    *,
    days: int = DEFAULT_WINDOW_DAYS,
) -> UsageView:
    summary, daily, breakdown = await asyncio.gather(
        asyncio.to_thread(client.usage_summary, project_id, days=days),
        asyncio.to_thread(client.usage_daily, project_id, days=days),
        asyncio.to_thread(client.usage_breakdown, project_id, days=days),
    )
    return UsageView(
        summary=summary,
        daily=daily,
        breakdown=rank_breakdown(breakdown),
        cost_by_provider=cost_by_provider(breakdown),
    )
