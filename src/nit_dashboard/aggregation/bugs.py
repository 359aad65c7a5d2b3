"""Bug counts, fix rate and severity grouping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nit_dashboard.utils.format import group_by_date

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from nit_dashboard.models.reports import Bug

SEVERITY_ORDER = ("critical", "high", "medium", "low")
STATUS_OPEN = "open"
CLOSED_STATUSES = frozenset({"fixed", "wont_fix", "false_positive"})


@dataclass(frozen=True)
class BugSummary:
    """Aggregate bug figures for one project."""

    total: int
    open_bugs: list[Bug]
    closed_bugs: list[Bug]
    fix_rate: float
    """Percent of bugs in a closed status."""

    by_severity: dict[str, list[Bug]]
    """Open bugs per lower-cased severity; the four known levels are always present."""

    timeline: list[tuple[str, float]]
    """Bugs created per day, ascending."""


def count_by_severity(bugs: Iterable[Bug]) -> dict[str, int]:
    """Count bugs per lower-cased severity."""
    counts: dict[str, int] = {}
    for bug in bugs:
        key = bug.severity.lower()
        counts[key] = counts.get(key, 0) + 1
    return counts


def group_by_severity(bugs: Iterable[Bug]) -> dict[str, list[Bug]]:
    """Group bugs by severity, known levels first in severity order."""
    groups: dict[str, list[Bug]] = {severity: [] for severity in SEVERITY_ORDER}
    for bug in bugs:
        groups.setdefault(bug.severity.lower(), []).append(bug)
    return groups


def summarize_bugs(bugs: Sequence[Bug]) -> BugSummary:
    open_bugs = [bug for bug in bugs if bug.status == STATUS_OPEN]
    closed_bugs = [bug for bug in bugs if bug.status in CLOSED_STATUSES]

    return BugSummary(
        total=len(bugs),
        open_bugs=open_bugs,
        closed_bugs=closed_bugs,
        fix_rate=len(closed_bugs) / len(bugs) * 100 if bugs else 0.0,
        by_severity=group_by_severity(open_bugs),
        timeline=group_by_date(bugs, lambda bug: bug.created_at),
    )


def open_bug_counts(bugs: Iterable[Bug]) -> dict[str, int]:
    """Open bugs per project id."""
    counts: dict[str, int] = {}
    for bug in bugs:
        if bug.status != STATUS_OPEN:
            continue
        counts[bug.project_id] = counts.get(bug.project_id, 0) + 1
    return counts
