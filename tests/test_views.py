"""Tests for the per-view loaders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from nit_dashboard.aggregation.usage import UsageBreakdownRow, UsageSummary
from nit_dashboard.memory.baselines import BaselineStore
from nit_dashboard.memory.store import InMemoryStore
from nit_dashboard.models.reports import (
    Bug,
    CoverageReport,
    DriftResult,
    DriftTimelinePoint,
    Project,
)
from nit_dashboard.utils.platform_client import PlatformApiError
from nit_dashboard.views import (
    OVERVIEW_LIMIT,
    PR_REPORT_LIMIT,
    build_coverage_view,
    build_runs_view,
    load_bug_summary,
    load_coverage_view,
    load_drift_view,
    load_overview,
    load_pr_groups,
    load_runs_view,
    load_usage_view,
)

ReportFactory = Callable[..., CoverageReport]


# ── Coverage ─────────────────────────────────────────────────────


def test_build_coverage_view_without_reports() -> None:
    view = build_coverage_view([], None)

    assert view.latest_coverage is None
    assert view.previous_coverage is None
    assert view.delta == 0.0
    assert view.trend == []
    assert view.heatmap == []
    assert view.report_count == 0


@pytest.mark.asyncio
async def test_load_coverage_view_uses_newest_full_report(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.reports = [
        report_factory(id="new", overall_coverage=0.9),
        report_factory(id="old", overall_coverage=0.8),
    ]
    fake_client.report_details = {
        "new": {"fullReport": {"files": [{"path": "a.py", "coverage": 0.5}]}},
    }

    view = await load_coverage_view(fake_client, "p1", limit=50)

    assert view.latest_coverage == pytest.approx(90.0)
    assert view.previous_coverage == pytest.approx(80.0)
    assert view.delta == pytest.approx(10.0)
    assert [p.path for p in view.heatmap] == ["a.py"]
    assert fake_client.calls[0] == ("list_reports", ("p1",), {"limit": 50})
    assert fake_client.calls[1] == ("get_report", ("new",), {"include_full": True})


@pytest.mark.asyncio
async def test_load_coverage_view_skips_detail_without_reports(fake_client: Any) -> None:
    view = await load_coverage_view(fake_client, "p1")

    assert view.report_count == 0
    assert fake_client.call_names() == ["list_reports"]


@pytest.mark.asyncio
async def test_load_coverage_view_propagates_errors(fake_client: Any) -> None:
    fake_client.reports = PlatformApiError("Unauthorized", 401)

    with pytest.raises(PlatformApiError):
        await load_coverage_view(fake_client, "p1")


# ── Runs & pull requests ─────────────────────────────────────────


def test_build_runs_view_filters_runs_but_lists_all_packages(
    report_factory: ReportFactory,
) -> None:
    reports = [
        report_factory(id="1", run_id="r1", package_id="web"),
        report_factory(id="2", run_id="r1", package_id="api"),
        report_factory(id="3", run_id="r2", package_id="api"),
    ]

    view = build_runs_view(reports, "api")

    assert [run.run_id for run in view.runs] == ["r1", "r2"]
    assert [len(run.reports) for run in view.runs] == [1, 1]
    assert [option.id for option in view.packages] == ["web", "api"]
    assert view.selected_package == "api"


@pytest.mark.asyncio
async def test_load_runs_view(fake_client: Any, report_factory: ReportFactory) -> None:
    fake_client.reports = [report_factory(run_id="r1"), report_factory(run_id="r1")]

    view = await load_runs_view(fake_client, "p1")

    assert len(view.runs) == 1
    assert view.selected_package is None


@pytest.mark.asyncio
async def test_load_pr_groups_uses_wide_window(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.reports = [report_factory(pr_number=3), report_factory(pr_number=None)]

    groups = await load_pr_groups(fake_client, "p1")

    assert [g.pr_number for g in groups] == [3]
    assert fake_client.calls[0][2] == {"limit": PR_REPORT_LIMIT}


# ── Bugs & drift ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_load_bug_summary(fake_client: Any, bug_factory: Callable[..., Bug]) -> None:
    fake_client.bugs = [bug_factory(status="open"), bug_factory(status="fixed")]

    summary = await load_bug_summary(fake_client, "p1")

    assert summary.total == 2
    assert summary.fix_rate == pytest.approx(50.0)


@pytest.mark.asyncio
async def test_load_drift_view_overlays_baselines(
    fake_client: Any, drift_factory: Callable[..., DriftResult]
) -> None:
    fake_client.drift = [
        drift_factory(id="2", test_name="summary", status="drifted", similarity_score=0.5),
        drift_factory(id="1", test_name="greeting", status="passed", similarity_score=1.0),
    ]
    fake_client.timeline = [DriftTimelinePoint(date="2026-01-01", total=2, drifted=1)]
    baselines = BaselineStore(InMemoryStore(), "p1")
    accepted_at = baselines.accept("summary")

    view = await load_drift_view(fake_client, "p1", baselines)

    assert [r.id for r in view.summary.drifted] == ["2"]
    assert view.summary.avg_similarity == pytest.approx(75.0)
    by_name = {row.test_name: row.baseline_accepted_at for row in view.rows}
    assert by_name == {"greeting": None, "summary": accepted_at}
    assert len(view.timeline) == 1


@pytest.mark.asyncio
async def test_load_drift_view_fails_when_any_fetch_fails(fake_client: Any) -> None:
    fake_client.timeline = PlatformApiError("Server error", 500)

    with pytest.raises(PlatformApiError):
        await load_drift_view(fake_client, "p1", BaselineStore(InMemoryStore(), "p1"))


# ── Overview & usage ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_load_overview(
    fake_client: Any, report_factory: ReportFactory, bug_factory: Callable[..., Bug]
) -> None:
    fake_client.projects = [
        Project(id="a", name="Alpha", total_runs=2),
        Project(id="b", name="Beta", total_runs=1),
        Project(id="c", name="Gamma"),
    ]
    fake_client.reports = [
        report_factory(project_id="a", created_at="2026-01-02T00:00:00Z", tests_failed=1),
        report_factory(project_id="b", created_at="2026-01-02T00:00:00Z"),
    ]
    fake_client.bugs = [bug_factory(project_id="b")]

    view = await load_overview(fake_client)

    assert [row.health.label for row in view.rows] == ["Needs attention", "Open bugs", "No runs"]
    assert [row.open_bugs for row in view.rows] == [0, 1, 0]
    assert view.summary.total_runs == 3
    list_calls = [call for call in fake_client.calls if call[0] in {"list_reports", "list_bugs"}]
    assert all(call[1] == (None,) for call in list_calls)
    assert all(call[2] == {"limit": OVERVIEW_LIMIT} for call in list_calls)


@pytest.mark.asyncio
async def test_load_usage_view(fake_client: Any) -> None:
    fake_client.usage = {
        "summary": UsageSummary(total_requests=3, total_cost_usd=1.5),
        "daily": [],
        "breakdown": [
            UsageBreakdownRow("openai", "gpt-4o", 1, 10, 0.5),
            UsageBreakdownRow("anthropic", "claude", 2, 20, 1.0),
        ],
    }

    view = await load_usage_view(fake_client, "p1", days=30)

    assert view.summary.total_requests == 3
    assert [row.provider for row in view.breakdown] == ["anthropic", "openai"]
    assert view.cost_by_provider == [("openai", 0.5), ("anthropic", 1.0)]
    assert {call[2]["days"] for call in fake_client.calls} == {30}
