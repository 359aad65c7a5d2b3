"""Configuration parsing from ``.nit.yml``.

The dashboard reads the same ``.nit.yml`` as the nit CLI. It uses the
``platform`` and ``sentry`` sections plus its own ``dashboard`` section; every
value can also come from a ``NIT_*`` environment variable.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUTHY = {True, "true", "1", "yes"}

DEFAULT_ALERT_DEBOUNCE_MS = 500
DEFAULT_REPORT_LIMIT = 200
DEFAULT_TIMEOUT_SECONDS = 15.0


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass
class PlatformConfig:
    """Platform API connection settings."""

    url: str = ""
    """Platform base URL (e.g., https://platform.getnit.dev)."""

    api_key: str = ""
    """Platform API key, sent as a bearer token."""

    session_cookie: str = ""
    """Dashboard session cookie (``name=value``), alternative to an API key."""

    project_id: str = ""
    """Default project for commands that take an optional project id."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    """Per-request timeout."""

    @property
    def is_configured(self) -> bool:
        """Return True when a URL and some credential are present."""
        return bool(self.url and (self.api_key or self.session_cookie))


@dataclass
class DashboardConfig:
    """Dashboard behaviour settings."""

    state_file: str = ""
    """Local state file; empty means ``~/.nit/dashboard_state.json``."""

    alert_debounce_ms: int = DEFAULT_ALERT_DEBOUNCE_MS
    """Quiet period before alert settings are saved."""

    report_limit: int = DEFAULT_REPORT_LIMIT
    """Reports fetched for the coverage, runs and PR views."""


@dataclass
class SentryConfig:
    """Sentry error monitoring configuration."""

    enabled: bool = False
    """Opt-in flag. No Sentry data sent unless True."""

    dsn: str = ""
    """Sentry DSN (Data Source Name)."""

    traces_sample_rate: float = 0.0
    """Fraction of transactions sent for tracing (0.0-1.0)."""

    environment: str = ""
    """Override environment tag (auto-detected if empty)."""


@dataclass
class NitDashboardConfig:
    """Complete resolved configuration."""

    platform: PlatformConfig = field(default_factory=PlatformConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    sentry: SentryConfig = field(default_factory=SentryConfig)
    raw: dict[str, Any] = field(default_factory=dict)
    """The resolved YAML document as loaded."""


def _parse_platform_config(raw: dict[str, Any]) -> PlatformConfig:
    platform_raw = _section(raw, "platform")
    return PlatformConfig(
        url=str(platform_raw.get("url", os.environ.get("NIT_PLATFORM_URL", ""))).strip(),
        api_key=str(platform_raw.get("api_key", os.environ.get("NIT_PLATFORM_API_KEY", ""))),
        session_cookie=str(
            platform_raw.get("session_cookie", os.environ.get("NIT_PLATFORM_SESSION_COOKIE", ""))
        ),
        project_id=str(
            platform_raw.get("project_id", os.environ.get("NIT_PLATFORM_PROJECT_ID", ""))
        ),
        timeout_seconds=float(
            platform_raw.get(
                "timeout_seconds",
                os.environ.get("NIT_PLATFORM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            )
        ),
    )


def _parse_dashboard_config(raw: dict[str, Any]) -> DashboardConfig:
    dashboard_raw = _section(raw, "dashboard")
    return DashboardConfig(
        state_file=str(
            dashboard_raw.get("state_file", os.environ.get("NIT_DASHBOARD_STATE_FILE", ""))
        ),
        alert_debounce_ms=int(dashboard_raw.get("alert_debounce_ms", DEFAULT_ALERT_DEBOUNCE_MS)),
        report_limit=int(dashboard_raw.get("report_limit", DEFAULT_REPORT_LIMIT)),
    )


def _parse_sentry_config(raw: dict[str, Any]) -> SentryConfig:
    sentry_raw = _section(raw, "sentry")
    enabled_raw = sentry_raw.get("enabled", os.environ.get("NIT_SENTRY_ENABLED", ""))
    return SentryConfig(
        enabled=enabled_raw in _TRUTHY,
        dsn=str(sentry_raw.get("dsn", os.environ.get("NIT_SENTRY_DSN", ""))),
        traces_sample_rate=float(
            sentry_raw.get(
                "traces_sample_rate",
                os.environ.get("NIT_SENTRY_TRACES_SAMPLE_RATE", "0.0"),
            )
        ),
        environment=str(sentry_raw.get("environment", "")),
    )


def load_config(root: str | Path) -> NitDashboardConfig:
    """Load ``.nit.yml`` from *root*.

    Falls back to defaults and environment variables when the file is missing
    or incomplete.
    """
    nit_yml = Path(root).resolve() / ".nit.yml"

    raw: dict[str, Any] = {}
    if nit_yml.is_file():
        parsed = yaml.safe_load(nit_yml.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        logger.debug("Loaded configuration from %s", nit_yml)

    return NitDashboardConfig(
        platform=_parse_platform_config(raw),
        dashboard=_parse_dashboard_config(raw),
        sentry=_parse_sentry_config(raw),
        raw=raw,
    )


def _validate_platform_config(platform: PlatformConfig) -> list[str]:
    errors: list[str] = []

    if not platform.url:
        errors.append("platform.url is required")
    elif not platform.url.startswith(("http://", "https://")):
        errors.append(f"platform.url must be an http(s) URL (got: {platform.url})")

    if not platform.api_key and not platform.session_cookie:
        errors.append("platform.api_key or platform.session_cookie is required")

    if platform.timeout_seconds <= 0:
        errors.append(
            f"platform.timeout_seconds must be positive (got: {platform.timeout_seconds})"
        )

    return errors


def _validate_dashboard_config(dashboard: DashboardConfig) -> list[str]:
    errors: list[str] = []

    if dashboard.alert_debounce_ms < 0:
        errors.append(
            f"dashboard.alert_debounce_ms must be non-negative (got: {dashboard.alert_debounce_ms})"
        )

    if dashboard.report_limit < 1:
        errors.append(f"dashboard.report_limit must be at least 1 (got: {dashboard.report_limit})")

    return errors


def _validate_sentry_config(sentry: SentryConfig) -> list[str]:
    errors: list[str] = []

    if sentry.enabled and not sentry.dsn:
        errors.append("sentry.dsn is required when sentry.enabled is true")

    if not 0.0 <= sentry.traces_sample_rate <= 1.0:
        errors.append(
            f"sentry.traces_sample_rate must be between 0.0 and 1.0 "
            f"(got: {sentry.traces_sample_rate})"
        )

    return errors


def validate_config(config: NitDashboardConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_platform_config(config.platform))
    errors.extend(_validate_dashboard_config(config.dashboard))
    errors.extend(_validate_sentry_config(config.sentry))
    return errors
