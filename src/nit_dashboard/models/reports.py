"""Platform API record models.

Records are parsed leniently: a field with the wrong type is treated as
missing instead of failing the whole record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from nit_dashboard.aggregation.normalize import (
    as_record,
    numeric_from_unknown,
    string_from_unknown,
)

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


def _text(record: dict[str, Any], key: str, default: str = "") -> str:
    value = record.get(key)
    return value if isinstance(value, str) else default


def _optional_text(record: dict[str, Any], key: str) -> str | None:
    return string_from_unknown(record.get(key))


def _count(record: dict[str, Any], key: str) -> int:
    number = numeric_from_unknown(record.get(key))
    if number is None or number < 0:
        return 0
    return int(number)


def _optional_int(record: dict[str, Any], key: str) -> int | None:
    number = numeric_from_unknown(record.get(key))
    return int(number) if number is not None else None


@dataclass(frozen=True)
class Project:
    """A platform project."""

    id: str
    name: str
    repo_url: str | None = None
    repo_provider: str = "github"
    default_branch: str = "main"
    created_at: str | None = None
    total_runs: int = 0
    detected_bugs: int = 0
    created_issues: int = 0
    created_prs: int = 0
    total_tokens: int = 0

    @classmethod
    def from_api(cls, raw: Any) -> Project | None:
        """Build a project from an API record, or ``None`` if it has no id."""
        record = as_record(raw)
        if record is None or not _text(record, "id"):
            return None

        return cls(
            id=_text(record, "id"),
            name=_text(record, "name", _text(record, "id")),
            repo_url=_optional_text(record, "repoUrl"),
            repo_provider=_text(record, "repoProvider", "github"),
            default_branch=_text(record, "defaultBranch", "main"),
            created_at=_optional_text(record, "createdAt"),
            total_runs=_count(record, "totalRuns"),
            detected_bugs=_count(record, "detectedBugs"),
            created_issues=_count(record, "createdIssues"),
            created_prs=_count(record, "createdPRs"),
            total_tokens=_count(record, "totalTokens"),
        )


@dataclass(frozen=True)
class CoverageReport:
    """One test-generation run against one package."""

    id: str
    project_id: str
    run_id: str
    created_at: str
    """ISO timestamp; compared lexically, which matches chronological order."""

    package_id: str | None = None
    """``None`` means the repository root package."""

    run_mode: str = ""
    branch: str | None = None
    commit_sha: str | None = None

    overall_coverage: float | None = None
    """Fraction in 0..1, ``None`` when the run produced no coverage data."""

    unit_coverage: float | None = None
    integration_coverage: float | None = None
    e2e_coverage: float | None = None

    tests_generated: int = 0
    tests_passed: int = 0
    tests_failed: int = 0
    bugs_found: int = 0
    bugs_fixed: int = 0

    llm_provider: str | None = None
    llm_model: str | None = None
    llm_total_tokens: int | None = None
    llm_cost_usd: float | None = None

    execution_time_ms: float | None = None
    execution_environment: str | None = None

    pr_number: int | None = None
    pr_url: str | None = None

    @classmethod
    def from_api(cls, raw: Any) -> CoverageReport | None:
        """Build a report from an API record, or ``None`` if it is not a record."""
        record = as_record(raw)
        if record is None:
            return None

        return cls(
            id=_text(record, "id"),
            project_id=_text(record, "projectId"),
            run_id=_text(record, "runId"),
            created_at=_text(record, "createdAt"),
            package_id=_optional_text(record, "packageId"),
            run_mode=_text(record, "runMode"),
            branch=_optional_text(record, "branch"),
            commit_sha=_optional_text(record, "commitSha"),
            overall_coverage=numeric_from_unknown(record.get("overallCoverage")),
            unit_coverage=numeric_from_unknown(record.get("unitCoverage")),
            integration_coverage=numeric_from_unknown(record.get("integrationCoverage")),
            e2e_coverage=numeric_from_unknown(record.get("e2eCoverage")),
            tests_generated=_count(record, "testsGenerated"),
            tests_passed=_count(record, "testsPassed"),
            tests_failed=_count(record, "testsFailed"),
            bugs_found=_count(record, "bugsFound"),
            bugs_fixed=_count(record, "bugsFixed"),
            llm_provider=_optional_text(record, "llmProvider"),
            llm_model=_optional_text(record, "llmModel"),
            llm_total_tokens=_optional_int(record, "llmTotalTokens"),
            llm_cost_usd=numeric_from_unknown(record.get("llmCostUsd")),
            execution_time_ms=numeric_from_unknown(record.get("executionTimeMs")),
            execution_environment=_optional_text(record, "executionEnvironment"),
            pr_number=_optional_int(record, "prNumber"),
            pr_url=_optional_text(record, "prUrl"),
        )


@dataclass(frozen=True)
class Bug:
    """A bug detected by a generation run."""

    id: str
    project_id: str
    file_path: str
    description: str
    severity: str
    status: str
    created_at: str
    package_id: str | None = None
    function_name: str | None = None
    root_cause: str | None = None
    github_issue_url: str | None = None
    github_pr_url: str | None = None
    resolved_at: str | None = None

    @classmethod
    def from_api(cls, raw: Any) -> Bug | None:
        """Build a bug from an API record, or ``None`` if it is not a record."""
        record = as_record(raw)
        if record is None:
            return None

        return cls(
            id=_text(record, "id"),
            project_id=_text(record, "projectId"),
            file_path=_text(record, "filePath"),
            description=_text(record, "description"),
            severity=_text(record, "severity", "low"),
            status=_text(record, "status", "open"),
            created_at=_text(record, "createdAt"),
            package_id=_optional_text(record, "packageId"),
            function_name=_optional_text(record, "functionName"),
            root_cause=_optional_text(record, "rootCause"),
            github_issue_url=_optional_text(record, "githubIssueUrl"),
            github_pr_url=_optional_text(record, "githubPrUrl"),
            resolved_at=_optional_text(record, "resolvedAt"),
        )


@dataclass(frozen=True)
class DriftResult:
    """One drift-check execution."""

    id: str
    project_id: str
    test_name: str
    status: str
    """``passed``, ``drifted`` or ``error``."""

    created_at: str
    similarity_score: float | None = None
    """Fraction in 0..1."""

    baseline_output: str | None = None
    current_output: str | None = None
    details: str | None = None

    @classmethod
    def from_api(cls, raw: Any) -> DriftResult | None:
        """Build a drift result from an API record, or ``None`` if it is not a record."""
        record = as_record(raw)
        if record is None:
            return None

        return cls(
            id=_text(record, "id"),
            project_id=_text(record, "projectId"),
            test_name=_text(record, "testName"),
            status=_text(record, "status"),
            created_at=_text(record, "createdAt"),
            similarity_score=numeric_from_unknown(record.get("similarityScore")),
            baseline_output=_optional_text(record, "baselineOutput"),
            current_output=_optional_text(record, "currentOutput"),
            details=_optional_text(record, "details"),
        )


@dataclass(frozen=True)
class DriftTimelinePoint:
    """Daily drift rollup computed by the platform."""

    date: str
    total: int
    drifted: int
    avg_similarity: float | None = None

    @classmethod
    def from_api(cls, raw: Any) -> DriftTimelinePoint | None:
        """Build a timeline point from an API record, or ``None`` if it is not a record."""
        record = as_record(raw)
        if record is None:
            return None

        return cls(
            date=_text(record, "date"),
            total=_count(record, "total"),
            drifted=_count(record, "drifted"),
            avg_similarity=numeric_from_unknown(record.get("avgSimilarity")),
        )


@dataclass(frozen=True)
class SecurityFinding:
    """A vulnerability reported by a security scan."""

    id: str
    project_id: str
    vulnerability_type: str
    severity: str
    file_path: str
    title: str
    description: str
    status: str
    created_at: str
    line_number: int | None = None
    function_name: str | None = None
    remediation: str | None = None
    confidence: float | None = None
    """Fraction in 0..1."""

    cwe_id: str | None = None
    evidence: str | None = None

    @property
    def location(self) -> str:
        if self.line_number is None:
            return self.file_path
        return f"{self.file_path}:{self.line_number}"

    @classmethod
    def from_api(cls, raw: Any) -> SecurityFinding | None:
        record = as_record(raw)
        if record is None:
            return None

        return cls(
            id=_text(record, "id"),
            project_id=_text(record, "projectId"),
            vulnerability_type=_text(record, "vulnerabilityType"),
            severity=_text(record, "severity", "low"),
            file_path=_text(record, "filePath"),
            title=_text(record, "title"),
            description=_text(record, "description"),
            status=_text(record, "status", "open"),
            created_at=_text(record, "createdAt"),
            line_number=_optional_int(record, "lineNumber"),
            function_name=_optional_text(record, "functionName"),
            remediation=_optional_text(record, "remediation"),
            confidence=numeric_from_unknown(record.get("confidence")),
            cwe_id=_optional_text(record, "cweId"),
            evidence=_optional_text(record, "evidence"),
        )


def parse_records(items: Any, factory: Callable[[Any], T | None]) -> list[T]:
    """Parse a JSON array with *factory*, dropping members it rejects."""
    if not isinstance(items, list):
        return []

    parsed: list[T] = []
    for item in items:
        value = factory(item)
        if value is not None:
            parsed.append(value)
    return parsed
