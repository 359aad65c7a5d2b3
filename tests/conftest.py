"""Shared fixtures for nit-dashboard tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from nit_dashboard.aggregation.security import RiskSummary, SecuritySummary
from nit_dashboard.models.reports import Bug, CoverageReport, DriftResult, SecurityFinding
from nit_dashboard.utils.platform_client import PlatformApiError

_NIT_ENV_VARS = (
    "NIT_PLATFORM_URL",
    "NIT_PLATFORM_API_KEY",
    "NIT_PLATFORM_SESSION_COOKIE",
    "NIT_PLATFORM_PROJECT_ID",
    "NIT_PLATFORM_TIMEOUT_SECONDS",
    "NIT_DASHBOARD_STATE_FILE",
    "NIT_SENTRY_ENABLED",
    "NIT_SENTRY_DSN",
    "NIT_SENTRY_TRACES_SAMPLE_RATE",
)


@pytest.fixture(autouse=True)
def _clean_nit_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's NIT_* variables out of config parsing."""
    for name in _NIT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ── Record factories ─────────────────────────────────────────────


def make_report(**overrides: Any) -> CoverageReport:
    """Build a coverage report with sensible defaults."""
    fields: dict[str, Any] = {
        "id": "rep-1",
        "project_id": "proj-1",
        "run_id": "run-1",
        "created_at": "2026-01-01T10:00:00Z",
    }
    fields.update(overrides)
    return CoverageReport(**fields)


def make_bug(**overrides: Any) -> Bug:
    fields: dict[str, Any] = {
        "id": "bug-1",
        "project_id": "proj-1",
        "file_path": "src/app.py",
        "description": "Off-by-one in pagination",
        "severity": "high",
        "status": "open",
        "created_at": "2026-01-01T10:00:00Z",
    }
    fields.update(overrides)
    return Bug(**fields)


def make_drift(**overrides: Any) -> DriftResult:
    fields: dict[str, Any] = {
        "id": "drift-1",
        "project_id": "proj-1",
        "test_name": "greeting",
        "status": "passed",
        "created_at": "2026-01-01T10:00:00Z",
    }
    fields.update(overrides)
    return DriftResult(**fields)


def make_finding(**overrides: Any) -> SecurityFinding:
    fields: dict[str, Any] = {
        "id": "sec-1",
        "project_id": "proj-1",
        "vulnerability_type": "sql_injection",
        "severity": "high",
        "file_path": "src/db.py",
        "title": "Unparameterised query",
        "description": "User input reaches a raw SQL string.",
        "status": "open",
        "created_at": "2026-01-01T10:00:00Z",
    }
    fields.update(overrides)
    return SecurityFinding(**fields)


@pytest.fixture
def report_factory() -> Callable[..., CoverageReport]:
    return make_report


@pytest.fixture
def bug_factory() -> Callable[..., Bug]:
    return make_bug


@pytest.fixture
def drift_factory() -> Callable[..., DriftResult]:
    return make_drift


@pytest.fixture
def finding_factory() -> Callable[..., SecurityFinding]:
    return make_finding


# ── Fake platform client ─────────────────────────────────────────


class FakePlatformClient:
    """In-memory stand-in for ``PlatformApiClient``.

    Each attribute holds the value returned by the method of the same name;
    an exception instance is raised instead of returned.
    """

    def __init__(self) -> None:
        self.projects: Any = []
        self.reports: Any = []
        self.report_details: dict[str, Any] = {}
        self.bugs: Any = []
        self.drift: Any = []
        self.timeline: Any = []
        self.memory: Any = {"version": 0, "global": None, "packages": {}}
        self.alert_config: Any = {}
        self.usage: dict[str, Any] = {}
        self.findings: Any = []
        self.risk_files: Any = []
        self.security: Any = SecuritySummary()
        self.risk: Any = RiskSummary()
        self.saved_alert_configs: list[dict[str, Any]] = []
        self.save_error: PlatformApiError | None = None
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _answer(self, name: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((name, args, kwargs))
        if isinstance(value, Exception):
            raise value
        return value

    def list_projects(self) -> Any:
        return self._answer("list_projects", self.projects)

    def list_reports(self, project_id: str | None = None, *, limit: int = 200) -> Any:
        return self._answer("list_reports", self.reports, project_id, limit=limit)

    def get_report(self, report_id: str, *, include_full: bool = False) -> Any:
        detail = self.report_details.get(report_id, {})
        return self._answer("get_report", detail, report_id, include_full=include_full)

    def list_bugs(self, project_id: str | None = None, *, limit: int = 500) -> Any:
        return self._answer("list_bugs", self.bugs, project_id, limit=limit)

    def list_drift(self, project_id: str) -> Any:
        return self._answer("list_drift", self.drift, project_id)

    def drift_timeline(self, project_id: str) -> Any:
        return self._answer("drift_timeline", self.timeline, project_id)

    def get_memory(self, project_id: str) -> Any:
        return self._answer("get_memory", self.memory, project_id)

    def list_security_findings(self, project_id: str, *, limit: int = 200) -> Any:
        return self._answer("list_security_findings", self.findings, project_id, limit=limit)

    def list_risk_scores(self, project_id: str, *, limit: int = 100) -> Any:
        return self._answer("list_risk_scores", self.risk_files, project_id, limit=limit)

    def security_summary(self, project_id: str) -> Any:
        return self._answer("security_summary", self.security, project_id)

    def risk_summary(self, project_id: str) -> Any:
        return self._answer("risk_summary", self.risk, project_id)

    def get_alert_config(self, project_id: str) -> Any:
        return self._answer("get_alert_config", self.alert_config, project_id)

    def update_alert_config(self, project_id: str, payload: dict[str, Any]) -> Any:
        self.calls.append(("update_alert_config", (project_id,), {}))
        if self.save_error is not None:
            raise self.save_error
        self.saved_alert_configs.append(dict(payload))
        return {"success": True}

    def usage_summary(self, project_id: str | None = None, *, days: int = 90) -> Any:
        return self._answer("usage_summary", self.usage.get("summary"), project_id, days=days)

    def usage_daily(self, project_id: str | None = None, *, days: int = 90) -> Any:
        return self._answer("usage_daily", self.usage.get("daily", []), project_id, days=days)

    def usage_breakdown(self, project_id: str | None = None, *, days: int = 90) -> Any:
        return self._answer(
            "usage_breakdown", self.usage.get("breakdown", []), project_id, days=days
        )

    def call_names(self) -> list[str]:
        return [name for name, _args, _kwargs in self.calls]


@pytest.fixture
def fake_client() -> FakePlatformClient:
    return FakePlatformClient()
