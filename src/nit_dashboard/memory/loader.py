"""Project memory: learned patterns and failed approaches.

Memory is read from the structured ``/api/v1/memory`` endpoint when the
project has synced one. Older projects only carry memory inside their report
blobs, so the loader falls back to sampling recent reports and extracting
whatever pattern lists they contain.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nit_dashboard.aggregation.normalize import (
    as_record,
    list_from_unknown,
    numeric_from_unknown,
    unique_in_order,
)
from nit_dashboard.utils.format import to_day
from nit_dashboard.utils.platform_client import PlatformApiError

if TYPE_CHECKING:
    from nit_dashboard.models.reports import CoverageReport
    from nit_dashboard.utils.platform_client import PlatformApiClient

logger = logging.getLogger(__name__)

MAX_MEMORY_ITEMS = 25
LEGACY_REPORT_LIMIT = 60
LEGACY_SAMPLE_SIZE = 12

_MEMORY_CONTAINERS = ("memory", "agentMemory")
_PATTERN_KEYS = ("learnedPatterns", "patterns", "wins")
_FAILURE_KEYS = ("failedApproaches", "failures", "dontRepeat")


@dataclass(frozen=True)
class MemoryGrowthPoint:
    date: str
    memory_items: int
    cumulative: int
    """Items in this snapshot and every older sampled snapshot."""


@dataclass(frozen=True)
class MemorySnapshot:
    """Memory extracted from one report blob."""

    report_id: str
    created_at: str
    patterns: list[str] = field(default_factory=list)
    failed_approaches: list[str] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.patterns) + len(self.failed_approaches)


@dataclass(frozen=True)
class MemoryState:
    """What the memory view shows for a project."""

    patterns: list[str] = field(default_factory=list)
    failed_approaches: list[str] = field(default_factory=list)
    snapshot_count: int = 0
    latest_date: str | None = None
    growth: list[MemoryGrowthPoint] = field(default_factory=list)
    error: str | None = None


def parse_memory_from_report(full_report: Any) -> tuple[list[str], list[str]]:
    """Extract ``(patterns, failed_approaches)`` from a full report blob.

    Looks in ``memory``, then ``agentMemory``, then the report root. Each list
    is de-duplicated in first-seen order.
    """
    root = as_record(full_report)
    if root is None:
        return [], []

    container = root
    for key in _MEMORY_CONTAINERS:
        nested = as_record(root.get(key))
        if nested is not None:
            container = nested
            break

    patterns = [item for key in _PATTERN_KEYS for item in list_from_unknown(container.get(key))]
    failed = [item for key in _FAILURE_KEYS for item in list_from_unknown(container.get(key))]
    return unique_in_order(patterns), unique_in_order(failed)


def _pattern_names(entries: Any) -> list[str]:
    if not isinstance(entries, list):
        return []

    names: list[str] = []
    for entry in entries:
        record = as_record(entry)
        pattern = record.get("pattern") if record else None
        if isinstance(pattern, str):
            names.append(pattern)
    return names[:MAX_MEMORY_ITEMS]


def memory_from_structured(payload: Any) -> MemoryState | None:
    """Build the state from a ``/api/v1/memory`` response.

    Returns ``None`` when the project has no structured memory yet (version 0
    or no global section).
    """
    record = as_record(payload)
    if record is None:
        return None

    version = numeric_from_unknown(record.get("version"))
    global_memory = as_record(record.get("global"))
    if version is None or version <= 0 or global_memory is None:
        return None

    return MemoryState(
        patterns=_pattern_names(global_memory.get("knownPatterns")),
        failed_approaches=_pattern_names(global_memory.get("failedPatterns")),
        snapshot_count=1,
        latest_date=None,
        growth=[],
    )


def build_growth(snapshots: list[MemorySnapshot]) -> list[MemoryGrowthPoint]:
    """Chronological growth series from newest-first snapshots."""
    growth: list[MemoryGrowthPoint] = []
    running = 0
    for snapshot in reversed(snapshots):
        running += snapshot.item_count
        growth.append(
            MemoryGrowthPoint(
                date=to_day(snapshot.created_at),
                memory_items=snapshot.item_count,
                cumulative=running,
            )
        )
    return growth


def memory_from_snapshots(snapshots: list[MemorySnapshot]) -> MemoryState:
    patterns = unique_in_order(p for s in snapshots for p in s.patterns)
    failed = unique_in_order(f for s in snapshots for f in s.failed_approaches)

    return MemoryState(
        patterns=patterns[:MAX_MEMORY_ITEMS],
        failed_approaches=failed[:MAX_MEMORY_ITEMS],
        snapshot_count=len(snapshots),
        latest_date=snapshots[0].created_at if snapshots else None,
        growth=build_growth(snapshots),
    )


async def _load_snapshot(client: PlatformApiClient, report: CoverageReport) -> MemorySnapshot:
    try:
        detail = await asyncio.to_thread(client.get_report, report.id, include_full=True)
    except PlatformApiError as exc:
        logger.debug("Skipping memory from report %s: %s", report.id, exc)
        return MemorySnapshot(report_id=report.id, created_at=report.created_at)

    patterns, failed = parse_memory_from_report(detail.get("fullReport"))
    return MemorySnapshot(
        report_id=report.id,
        created_at=report.created_at,
        patterns=patterns,
        failed_approaches=failed,
    )


async def _load_structured(client: PlatformApiClient, project_id: str) -> MemoryState | None:
    try:
        payload = await asyncio.to_thread(client.get_memory, project_id)
    except PlatformApiError as exc:
        logger.debug("Structured memory unavailable for %s: %s", project_id, exc)
        return None
    return memory_from_structured(payload)


async def load_memory_state(client: PlatformApiClient, project_id: str) -> MemoryState:
    """Load memory for *project_id*, falling back to report blobs.

    Never raises for platform errors: a failure of the fallback path is
    reported through :attr:`MemoryState.error`.
    """
    structured = await _load_structured(client, project_id)
    if structured is not None:
        return structured

    try:
        reports = await asyncio.to_thread(
            client.list_reports, project_id, limit=LEGACY_REPORT_LIMIT
        )
        snapshots = await asyncio.gather(
            *(_load_snapshot(client, report) for report in reports[:LEGACY_SAMPLE_SIZE])
        )
    except PlatformApiError as exc:
        logger.warning("Unable to load memory for %s: %s", project_id, exc)
        return MemoryState(error=exc.message or "Unable to load memory")

    return memory_from_snapshots(list(snapshots))
