"""Group coverage reports by pull request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nit_dashboard.models.reports import CoverageReport


@dataclass(frozen=True)
class PRGroup:
    """All reports attached to one pull request.

    ``branch`` and ``pr_url`` are taken from the first report of the PR in
    input order; reports of the same PR are expected to agree on them.
    """

    pr_number: int
    pr_url: str | None
    reports: tuple[CoverageReport, ...]
    branch: str | None
    latest_date: str
    avg_coverage: float
    """Percent (0..100) over reports with coverage data."""

    total_tests: int
    total_bugs_found: int
    total_cost: float


def group_by_pr(reports: Iterable[CoverageReport]) -> list[PRGroup]:
    """Bucket reports by ``pr_number``, most recently active PR first.

    Reports without a PR number are skipped.
    """
    buckets: dict[int, list[CoverageReport]] = {}
    for report in reports:
        if report.pr_number is None:
            continue
        buckets.setdefault(report.pr_number, []).append(report)

    groups: list[PRGroup] = []
    for pr_number, pr_reports in buckets.items():
        first = pr_reports[0]
        coverages = [r.overall_coverage for r in pr_reports if r.overall_coverage is not None]
        groups.append(
            PRGroup(
                pr_number=pr_number,
                pr_url=first.pr_url,
                reports=tuple(pr_reports),
                branch=first.branch,
                latest_date=max(r.created_at for r in pr_reports),
                avg_coverage=sum(coverages) / len(coverages) * 100 if coverages else 0.0,
                total_tests=sum(r.tests_generated for r in pr_reports),
                total_bugs_found=sum(r.bugs_found for r in pr_reports),
                total_cost=sum(r.llm_cost_usd or 0.0 for r in pr_reports),
            )
        )

    groups.sort(key=lambda group: group.latest_date, reverse=True)
    return groups
