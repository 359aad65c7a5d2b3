"""Security findings and file risk scores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nit_dashboard.aggregation.bugs import SEVERITY_ORDER
from nit_dashboard.aggregation.normalize import (
    as_record,
    list_from_unknown,
    numeric_from_unknown,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nit_dashboard.models.reports import SecurityFinding

RISK_LEVELS = ("CRITICAL", "HIGH", "MEDIUM", "LOW")


def _count(value: Any) -> int:
    number = numeric_from_unknown(value)
    return int(number) if number is not None and number > 0 else 0


def _count_map(raw: Any, keys: Iterable[str]) -> dict[str, int]:
    """Counts for *keys*, all present, missing or malformed entries as 0."""
    record = as_record(raw) or {}
    return {key: _count(record.get(key)) for key in keys}


def _counted_pairs(items: Any, label_key: str) -> list[tuple[str, int]]:
    """``(label, count)`` pairs from an array of ``{label_key, count}`` objects."""
    if not isinstance(items, list):
        return []

    pairs: list[tuple[str, int]] = []
    for item in items:
        entry = as_record(item)
        if entry is not None and isinstance(entry.get(label_key), str):
            pairs.append((entry[label_key], _count(entry.get("count"))))
    return pairs


@dataclass(frozen=True)
class RiskScore:
    """Per-file risk score; ``overall_score`` is a fraction in 0..1."""

    file_path: str
    overall_score: float
    level: str
    """``CRITICAL``, ``HIGH``, ``MEDIUM`` or ``LOW``."""

    coverage_percentage: float | None = None
    function_count: int | None = None

    @classmethod
    def from_api(cls, raw: Any) -> RiskScore | None:
        """Build a risk score, or ``None`` when the record has no file path."""
        record = as_record(raw)
        if record is None:
            return None
        file_path = record.get("filePath")
        if not isinstance(file_path, str) or not file_path:
            return None

        level = record.get("level")
        function_count = numeric_from_unknown(record.get("functionCount"))
        return cls(
            file_path=file_path,
            overall_score=numeric_from_unknown(record.get("overallScore")) or 0.0,
            level=level.upper() if isinstance(level, str) and level else "MEDIUM",
            coverage_percentage=numeric_from_unknown(record.get("coveragePercentage")),
            function_count=int(function_count) if function_count is not None else None,
        )


def parse_risk_scores(items: Any) -> list[RiskScore]:
    if not isinstance(items, list):
        return []
    return [score for item in items if (score := RiskScore.from_api(item)) is not None]


@dataclass(frozen=True)
class SecuritySummary:
    total_findings: int = 0
    open_findings: int = 0
    by_severity: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(SEVERITY_ORDER, 0)
    )
    by_type: list[tuple[str, int]] = field(default_factory=list)
    """Vulnerability types, most frequent first."""

    recent_trend: list[tuple[str, int]] = field(default_factory=list)

    @property
    def critical_or_high(self) -> int:
        return self.by_severity.get("critical", 0) + self.by_severity.get("high", 0)

    @classmethod
    def from_api(cls, raw: Any) -> SecuritySummary:
        record = as_record(raw) or {}
        return cls(
            total_findings=_count(record.get("totalFindings")),
            open_findings=_count(record.get("openFindings")),
            by_severity=_count_map(record.get("bySeverity"), SEVERITY_ORDER),
            by_type=_counted_pairs(record.get("byType"), "type"),
            recent_trend=_counted_pairs(record.get("recentTrend"), "date"),
        )


@dataclass(frozen=True)
class RiskSummary:
    avg_score: float = 0.0
    by_level: dict[str, int] = field(default_factory=lambda: dict.fromkeys(RISK_LEVELS, 0))
    top_risky_files: list[RiskScore] = field(default_factory=list)
    criticality_domains: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: Any) -> RiskSummary:
        record = as_record(raw) or {}
        return cls(
            avg_score=numeric_from_unknown(record.get("avgScore")) or 0.0,
            by_level=_count_map(record.get("byLevel"), RISK_LEVELS),
            top_risky_files=parse_risk_scores(record.get("topRiskyFiles")),
            criticality_domains=list_from_unknown(record.get("criticalityDomains")),
        )


def group_findings_by_severity(
    findings: Iterable[SecurityFinding],
) -> dict[str, list[SecurityFinding]]:
    """Group findings by lower-cased severity.

    The four known levels are always present, in severity order; unknown
    severities follow in first-seen order. Input order is kept within a group.
    """
    groups: dict[str, list[SecurityFinding]] = {severity: [] for severity in SEVERITY_ORDER}
    for finding in findings:
        groups.setdefault(finding.severity.lower(), []).append(finding)
    return groups


def severity_segments(summary: SecuritySummary) -> list[tuple[str, int, float]]:
    """``(severity, count, percent of total)`` for each known severity with findings."""
    if summary.total_findings == 0:
        return []
    return [
        (severity, count, count / summary.total_findings * 100)
        for severity in SEVERITY_ORDER
        if (count := summary.by_severity.get(severity, 0)) > 0
    ]
