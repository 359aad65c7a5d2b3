"""Tests for project memory loading."""

from collections.abc import Callable
from typing import Any

import pytest

from nit_dashboard.memory.loader import (
    MAX_MEMORY_ITEMS,
    MemoryGrowthPoint,
    MemorySnapshot,
    build_growth,
    load_memory_state,
    memory_from_structured,
    parse_memory_from_report,
)
from nit_dashboard.models.reports import CoverageReport
from nit_dashboard.utils.platform_client import PlatformApiError

ReportFactory = Callable[..., CoverageReport]


# ── parse_memory_from_report ─────────────────────────────────────


def test_parse_prefers_memory_container() -> None:
    body = {
        "memory": {"learnedPatterns": ["a", "b"], "failures": ["x"]},
        "agentMemory": {"patterns": ["ignored"]},
        "wins": ["also-ignored"],
    }

    assert parse_memory_from_report(body) == (["a", "b"], ["x"])


def test_parse_falls_back_to_root_and_merges_keys() -> None:
    body = {
        "patterns": [" a ", "b"],
        "wins": ["a", "c", 5],
        "failedApproaches": ["x"],
        "dontRepeat": ["x", "y", ""],
    }

    assert parse_memory_from_report(body) == (["a", "b", "c"], ["x", "y"])


@pytest.mark.parametrize("body", [None, "text", [], {"memory": "nope"}])
def test_parse_unknown_shapes(body: Any) -> None:
    assert parse_memory_from_report(body) == ([], [])


# ── Structured memory ────────────────────────────────────────────


def test_structured_memory_uses_pattern_names() -> None:
    payload = {
        "version": 3,
        "global": {
            "knownPatterns": [{"pattern": f"p{i}"} for i in range(30)],
            "failedPatterns": [{"pattern": "f1"}, {"reason": "no name"}, "junk"],
        },
    }

    state = memory_from_structured(payload)

    assert state is not None
    assert len(state.patterns) == MAX_MEMORY_ITEMS
    assert state.failed_approaches == ["f1"]
    assert state.snapshot_count == 1
    assert state.growth == []


@pytest.mark.parametrize(
    "payload",
    [
        {"version": 0, "global": {"knownPatterns": []}},
        {"version": 2, "global": None},
        {"global": {}},
        None,
    ],
)
def test_structured_memory_absent(payload: Any) -> None:
    assert memory_from_structured(payload) is None


def test_structured_memory_with_empty_global() -> None:
    state = memory_from_structured({"version": 1, "global": {}})

    assert state is not None
    assert state.patterns == []


# ── Growth ───────────────────────────────────────────────────────


def test_growth_is_chronological_running_total() -> None:
    snapshots = [
        MemorySnapshot("r3", "2026-01-03T00:00:00Z", patterns=["a", "b"]),
        MemorySnapshot("r2", "2026-01-02T00:00:00Z"),
        MemorySnapshot("r1", "2026-01-01T00:00:00Z", patterns=["a"], failed_approaches=["x"]),
    ]

    assert build_growth(snapshots) == [
        MemoryGrowthPoint(date="2026-01-01", memory_items=2, cumulative=2),
        MemoryGrowthPoint(date="2026-01-02", memory_items=0, cumulative=2),
        MemoryGrowthPoint(date="2026-01-03", memory_items=2, cumulative=4),
    ]


# ── load_memory_state ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_load_prefers_structured_memory(fake_client: Any) -> None:
    fake_client.memory = {"version": 1, "global": {"knownPatterns": [{"pattern": "p"}]}}

    state = await load_memory_state(fake_client, "p1")

    assert state.patterns == ["p"]
    assert "list_reports" not in fake_client.call_names()


@pytest.mark.asyncio
async def test_load_without_memory_or_reports(fake_client: Any) -> None:
    """Version 0 and no reports yields empty lists and no error."""
    state = await load_memory_state(fake_client, "p1")

    assert state.patterns == []
    assert state.failed_approaches == []
    assert state.snapshot_count == 0
    assert state.latest_date is None
    assert state.error is None


@pytest.mark.asyncio
async def test_load_falls_back_to_report_blobs(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.reports = [
        report_factory(id="r2", created_at="2026-01-02T00:00:00Z"),
        report_factory(id="r1", created_at="2026-01-01T00:00:00Z"),
    ]
    fake_client.report_details = {
        "r2": {"fullReport": {"memory": {"learnedPatterns": ["a", "b"]}}},
        "r1": {"fullReport": {"learnedPatterns": ["b", "c"], "failures": ["x"]}},
    }

    state = await load_memory_state(fake_client, "p1")

    assert state.patterns == ["a", "b", "c"]
    assert state.failed_approaches == ["x"]
    assert state.snapshot_count == 2
    assert state.latest_date == "2026-01-02T00:00:00Z"
    assert [point.cumulative for point in state.growth] == [3, 5]


@pytest.mark.asyncio
async def test_load_samples_at_most_twelve_reports(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.reports = [report_factory(id=f"r{i}") for i in range(20)]

    state = await load_memory_state(fake_client, "p1")

    assert state.snapshot_count == 12
    assert fake_client.call_names().count("get_report") == 12


@pytest.mark.asyncio
async def test_fallback_lists_sixty_reports_and_fetches_full_bodies(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.reports = [report_factory(id=f"r{i}") for i in range(3)]

    await load_memory_state(fake_client, "p1")

    assert ("list_reports", ("p1",), {"limit": 60}) in fake_client.calls
    detail_calls = [call for call in fake_client.calls if call[0] == "get_report"]
    assert [args for _name, args, _kwargs in detail_calls] == [("r0",), ("r1",), ("r2",)]
    assert all(kwargs == {"include_full": True} for _name, _args, kwargs in detail_calls)


@pytest.mark.asyncio
async def test_failed_report_detail_degrades_to_empty_snapshot(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.reports = [report_factory(id="ok"), report_factory(id="broken")]
    fake_client.report_details = {
        "ok": {"fullReport": {"patterns": ["a"]}},
        "broken": PlatformApiError("boom", 500),
    }

    state = await load_memory_state(fake_client, "p1")

    assert state.error is None
    assert state.patterns == ["a"]
    assert state.snapshot_count == 2


@pytest.mark.asyncio
async def test_report_list_failure_sets_error(fake_client: Any) -> None:
    fake_client.reports = PlatformApiError("Service unavailable", 503)

    state = await load_memory_state(fake_client, "p1")

    assert state.error == "Service unavailable"
    assert state.patterns == []


@pytest.mark.asyncio
async def test_structured_endpoint_failure_uses_fallback(
    fake_client: Any, report_factory: ReportFactory
) -> None:
    fake_client.memory = PlatformApiError("Not found", 404)
    fake_client.reports = [report_factory(id="r1")]
    fake_client.report_details = {"r1": {"fullReport": {"wins": ["w"]}}}

    state = await load_memory_state(fake_client, "p1")

    assert state.patterns == ["w"]
