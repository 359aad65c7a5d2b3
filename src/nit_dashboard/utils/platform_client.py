"""HTTP client for the nit platform API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit, urlunsplit

import requests

from nit_dashboard.aggregation.normalize import as_record
from nit_dashboard.aggregation.security import RiskScore, RiskSummary, SecuritySummary
from nit_dashboard.aggregation.usage import UsageBreakdownRow, UsageDailyPoint, UsageSummary
from nit_dashboard.models.reports import (
    Bug,
    CoverageReport,
    DriftResult,
    DriftTimelinePoint,
    Project,
    SecurityFinding,
    parse_records,
)
from nit_dashboard.telemetry.sentry_integration import record_api_failure

if TYPE_CHECKING:
    from collections.abc import Mapping

    from nit_dashboard.config import PlatformConfig

logger = logging.getLogger(__name__)

_PROJECTS_PATH = "/api/projects"
_REPORTS_PATH = "/api/v1/reports"
_BUGS_PATH = "/api/v1/bugs"
_DRIFT_PATH = "/api/v1/drift"
_DRIFT_TIMELINE_PATH = "/api/v1/drift/timeline"
_MEMORY_PATH = "/api/v1/memory"
_SECURITY_PATH = "/api/v1/security"
_RISK_PATH = "/api/v1/risk"
_ALERT_CONFIG_PATH = "/api/alert-config"
_LLM_USAGE_PATH = "/api/llm-usage"

_HTTP_SUCCESS_MIN = 200
_HTTP_SUCCESS_MAX = 300
_HTTP_NO_CONTENT = 204
_HTTP_UNAUTHORIZED = 401
_MAX_ERROR_TEXT = 300

DEFAULT_REPORT_LIMIT = 200
DEFAULT_BUG_LIMIT = 500
DEFAULT_DRIFT_LIMIT = 300
DEFAULT_WINDOW_DAYS = 90
DEFAULT_FINDING_LIMIT = 200
DEFAULT_RISK_LIMIT = 100

QueryValue = str | int | bool | None


class PlatformApiError(RuntimeError):
    """Raised when a platform API request fails.

    ``status`` is the HTTP status, or ``0`` when no response was received.
    """

    def __init__(self, message: str, status: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    @property
    def is_unauthorized(self) -> bool:
        return self.status == _HTTP_UNAUTHORIZED


def normalize_platform_url(url: str) -> str:
    """Normalize and trim a configured platform URL."""
    return url.strip().rstrip("/")


def _join_platform_path(base_url: str, endpoint_path: str) -> str:
    normalized_base = normalize_platform_url(base_url)
    split = urlsplit(normalized_base)
    base_path = split.path.rstrip("/")
    target_path = endpoint_path

    if base_path.endswith("/api/v1") and endpoint_path.startswith("/api/v1/"):
        target_path = endpoint_path[len("/api/v1") :]
    elif base_path.endswith("/api") and endpoint_path.startswith("/api/"):
        target_path = endpoint_path[len("/api") :]

    joined_path = f"{base_path}{target_path}" if base_path else target_path
    return urlunsplit((split.scheme, split.netloc, joined_path, split.query, split.fragment))


def _clean_query(query: Mapping[str, QueryValue] | None) -> dict[str, str]:
    """Drop ``None`` and empty values; booleans become ``1``/``0``."""
    if not query:
        return {}

    cleaned: dict[str, str] = {}
    for key, value in query.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            cleaned[key] = "1" if value else "0"
        else:
            cleaned[key] = str(value)
    return cleaned


def _is_json(response: requests.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


def parse_error_payload(response: requests.Response) -> tuple[str, Any]:
    """Extract a human-readable message and the decoded body from an error response."""
    fallback = f"{response.status_code} {response.reason or ''}".strip()

    if _is_json(response):
        try:
            body = response.json()
        except ValueError:
            text = response.text.strip()
            return (text[:_MAX_ERROR_TEXT] or fallback), text

        record = as_record(body) or {}
        error = record.get("error")
        nested = as_record(error) or {}
        message = (
            (error if isinstance(error, str) and error else None)
            or (record.get("message") if isinstance(record.get("message"), str) else None)
            or (nested.get("message") if isinstance(nested.get("message"), str) else None)
            or fallback
        )
        return message, body

    text = response.text.strip()
    return (text[:_MAX_ERROR_TEXT] or fallback), text


class PlatformApiClient:
    """Thin synchronous client over a ``requests.Session``.

    Authenticates with a bearer API key, a dashboard session cookie, or both.
    Async callers wrap methods with :func:`asyncio.to_thread`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        session_cookie: str = "",
        timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = normalize_platform_url(base_url)
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

        if api_key.strip():
            self._session.headers["Authorization"] = f"Bearer {api_key.strip()}"
        if session_cookie.strip():
            self._session.headers["Cookie"] = session_cookie.strip()

    @classmethod
    def from_config(cls, config: PlatformConfig) -> PlatformApiClient:
        return cls(
            config.url,
            api_key=config.api_key,
            session_cookie=config.session_cookie,
            timeout_seconds=config.timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._session.close()

    def url_for(self, path: str) -> str:
        return _join_platform_path(self._base_url, path)

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, QueryValue] | None = None,
        json_body: Mapping[str, Any] | None = None,
    ) -> Any:
        """Perform a request and decode the response.

        Returns:
            Decoded JSON, the response text for non-JSON bodies, or ``None``
            for ``204 No Content``.

        Raises:
            PlatformApiError: On transport failure or a non-2xx status.
        """
        if not self._base_url:
            raise PlatformApiError("Platform URL is not configured.", 0)

        try:
            response = self._session.request(
                method,
                self.url_for(path),
                params=_clean_query(query),
                json=dict(json_body) if json_body is not None else None,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise PlatformApiError(f"Platform request failed: {exc}", 0) from exc

        status = response.status_code
        if status < _HTTP_SUCCESS_MIN or status >= _HTTP_SUCCESS_MAX:
            message, details = parse_error_payload(response)
            error = PlatformApiError(message, status, details)
            logger.debug("%s %s -> %d: %s", method, path, status, message)
            record_api_failure(method, path, status, error)
            raise error

        if status == _HTTP_NO_CONTENT:
            return None

        if _is_json(response):
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    def _get_record(
        self, path: str, query: Mapping[str, QueryValue] | None = None
    ) -> dict[str, Any]:
        return as_record(self.request("GET", path, query=query)) or {}

    # ── Projects ─────────────────────────────────────────────────────

    def list_projects(self) -> list[Project]:
        body = self._get_record(_PROJECTS_PATH)
        return parse_records(body.get("projects"), Project.from_api)

    def get_project(self, project_id: str) -> Project | None:
        body = self._get_record(f"{_PROJECTS_PATH}/{project_id}")
        return Project.from_api(body.get("project"))

    # ── Reports ──────────────────────────────────────────────────────

    def list_reports(
        self, project_id: str | None = None, *, limit: int = DEFAULT_REPORT_LIMIT
    ) -> list[CoverageReport]:
        body = self._get_record(_REPORTS_PATH, {"projectId": project_id, "limit": limit})
        return parse_records(body.get("reports"), CoverageReport.from_api)

    def get_report(self, report_id: str, *, include_full: bool = False) -> dict[str, Any]:
        """Return ``{"report": ..., "fullReport": ...}`` as sent by the platform."""
        query: dict[str, QueryValue] = {"includeFull": True} if include_full else {}
        return self._get_record(f"{_REPORTS_PATH}/{report_id}", query)

    # ── Bugs & drift ─────────────────────────────────────────────────

    def list_bugs(
        self,
        project_id: str | None = None,
        *,
        status: str | None = None,
        severity: str | None = None,
        limit: int = DEFAULT_BUG_LIMIT,
    ) -> list[Bug]:
        body = self._get_record(
            _BUGS_PATH,
            {"projectId": project_id, "status": status, "severity": severity, "limit": limit},
        )
        return parse_records(body.get("bugs"), Bug.from_api)

    def list_drift(
        self,
        project_id: str,
        *,
        status: str | None = None,
        limit: int = DEFAULT_DRIFT_LIMIT,
    ) -> list[DriftResult]:
        body = self._get_record(
            _DRIFT_PATH, {"projectId": project_id, "status": status, "limit": limit}
        )
        return parse_records(body.get("results"), DriftResult.from_api)

    def drift_timeline(
        self, project_id: str, *, days: int = DEFAULT_WINDOW_DAYS
    ) -> list[DriftTimelinePoint]:
        body = self._get_record(_DRIFT_TIMELINE_PATH, {"projectId": project_id, "days": days})
        return parse_records(body.get("timeline"), DriftTimelinePoint.from_api)

    # ── Memory ───────────────────────────────────────────────────────

    def get_memory(self, project_id: str) -> dict[str, Any]:
        return self._get_record(_MEMORY_PATH, {"projectId": project_id})

    # ── Security & risk ──────────────────────────────────────────────

    def list_security_findings(
        self,
        project_id: str,
        *,
        status: str | None = None,
        severity: str | None = None,
        limit: int = DEFAULT_FINDING_LIMIT,
    ) -> list[SecurityFinding]:
        body = self._get_record(
            _SECURITY_PATH,
            {"projectId": project_id, "status": status, "severity": severity, "limit": limit},
        )
        return parse_records(body.get("findings"), SecurityFinding.from_api)

    def security_summary(self, project_id: str) -> SecuritySummary:
        body = self._get_record(f"{_SECURITY_PATH}/summary", {"projectId": project_id})
        return SecuritySummary.from_api(body)

    def list_risk_scores(
        self,
        project_id: str,
        *,
        level: str | None = None,
        limit: int = DEFAULT_RISK_LIMIT,
    ) -> list[RiskScore]:
        """Per-file risk scores, highest risk first."""
        body = self._get_record(
            _RISK_PATH, {"projectId": project_id, "level": level, "limit": limit}
        )
        return parse_records(body.get("files"), RiskScore.from_api)

    def risk_summary(self, project_id: str) -> RiskSummary:
        body = self._get_record(f"{_RISK_PATH}/summary", {"projectId": project_id})
        return RiskSummary.from_api(body)

    # ── Alert config ─────────────────────────────────────────────────

    def get_alert_config(self, project_id: str) -> dict[str, Any]:
        body = self._get_record(f"{_ALERT_CONFIG_PATH}/{project_id}")
        return as_record(body.get("config")) or {}

    def update_alert_config(self, project_id: str, payload: Mapping[str, Any]) -> Any:
        """Replace the stored alert config; omitted fields are unset."""
        return self.request("PUT", f"{_ALERT_CONFIG_PATH}/{project_id}", json_body=payload)

    # ── LLM usage ────────────────────────────────────────────────────

    def _usage_query(self, project_id: str | None, days: int) -> dict[str, QueryValue]:
        return {"projectId": project_id, "days": days}

    def usage_summary(
        self, project_id: str | None = None, *, days: int = DEFAULT_WINDOW_DAYS
    ) -> UsageSummary:
        body = self._get_record(f"{_LLM_USAGE_PATH}/summary", self._usage_query(project_id, days))
        return UsageSummary.from_api(body.get("summary"))

    def usage_daily(
        self, project_id: str | None = None, *, days: int = DEFAULT_WINDOW_DAYS
    ) -> list[UsageDailyPoint]:
        body = self._get_record(f"{_LLM_USAGE_PATH}/daily", self._usage_query(project_id, days))
        return parse_records(body.get("daily"), UsageDailyPoint.from_api)

    def usage_breakdown(
        self, project_id: str | None = None, *, days: int = DEFAULT_WINDOW_DAYS
    ) -> list[UsageBreakdownRow]:
        body = self._get_record(
            f"{_LLM_USAGE_PATH}/breakdown", self._usage_query(project_id, days)
        )
        return parse_records(body.get("breakdown"), UsageBreakdownRow.from_api)
