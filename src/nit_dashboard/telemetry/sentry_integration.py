"""Sentry SDK integration for nit-dashboard.

Strictly opt-in: nothing is sent unless ``sentry.enabled: true`` is set in
``.nit.yml`` or ``NIT_SENTRY_ENABLED=true``. Events are scrubbed of
credentials (API keys, session cookies, webhook URLs) before they leave the
process.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import TYPE_CHECKING, Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from nit_dashboard import __version__

if TYPE_CHECKING:
    from nit_dashboard.config import SentryConfig

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_initialized: dict[str, bool] = {"value": False}

_HTTP_SERVER_ERROR = 500

_SENSITIVE_PATTERN = re.compile(
    r"(api[_-]?key|password|secret|token|dsn|authorization|cookie)\s*[:=]\s*\S+",
    re.IGNORECASE,
)

_SLACK_WEBHOOK_RE = re.compile(r"https://hooks\.slack\.com/\S+")

_SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "apikey",
        "password",
        "secret",
        "token",
        "dsn",
        "authorization",
        "cookie",
        "session_cookie",
        "slackwebhook",
        "slack_webhook",
        "resendapikey",
        "resend_api_key",
    }
)


def init_sentry(config: SentryConfig) -> None:
    """Initialize Sentry SDK if enabled and configured.

    Idempotent and thread-safe.
    """
    with _init_lock:
        if _initialized["value"]:
            return
        if not config.enabled:
            logger.debug("Sentry disabled (sentry.enabled is false)")
            return
        if not config.dsn:
            logger.warning("Sentry enabled but no DSN configured")
            return

        environment = config.environment or ("ci" if os.environ.get("CI") else "local")

        sentry_sdk.init(
            dsn=config.dsn,
            release=f"nit-dashboard@{__version__}",
            environment=environment,
            traces_sample_rate=config.traces_sample_rate,
            send_default_pii=False,
            server_name="",
            before_send=_before_send,
            in_app_include=["nit_dashboard"],
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
        )

        _initialized["value"] = True
        logger.info(
            "Sentry initialized (env=%s, tracing=%.2f)", environment, config.traces_sample_rate
        )


def is_sentry_enabled() -> bool:
    """Return whether Sentry has been successfully initialized."""
    return _initialized["value"]


# ---------------------------------------------------------------------------
# Privacy scrubbing
# ---------------------------------------------------------------------------


def _scrub_string(value: str) -> str:
    return _SLACK_WEBHOOK_RE.sub("[REDACTED]", _SENSITIVE_PATTERN.sub("[REDACTED]", value))


def _scrub_dict(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in _SENSITIVE_KEYS:
            result[key] = "[REDACTED]"
        elif isinstance(value, str):
            result[key] = _scrub_string(value)
        elif isinstance(value, dict):
            result[key] = _scrub_dict(value)
        else:
            result[key] = value
    return result


def _scrub_event(event: dict[str, Any]) -> dict[str, Any]:
    """Deep-scrub an event dict for sensitive data."""
    exception = event.get("exception")
    if isinstance(exception, dict):
        for value in exception.get("values", []):
            if isinstance(value.get("value"), str):
                value["value"] = _scrub_string(value["value"])
            stacktrace = value.get("stacktrace")
            if isinstance(stacktrace, dict):
                for frame in stacktrace.get("frames", []):
                    frame.pop("vars", None)

    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, dict):
        for crumb in breadcrumbs.get("values", []):
            msg = crumb.get("message")
            if isinstance(msg, str):
                crumb["message"] = _scrub_string(msg)
            crumb_data = crumb.get("data")
            if isinstance(crumb_data, dict):
                crumb["data"] = _scrub_dict(crumb_data)

    for section in ("tags", "extra"):
        value = event.get(section)
        if isinstance(value, dict):
            event[section] = _scrub_dict(value)

    event.pop("server_name", None)
    return event


def _before_send(event: dict[str, Any], _hint: dict[str, Any]) -> dict[str, Any] | None:
    return _scrub_event(event)


# ---------------------------------------------------------------------------
# API error reporting (no-op when disabled)
# ---------------------------------------------------------------------------


def record_api_failure(method: str, path: str, status: int, error: Exception) -> None:
    """Leave a breadcrumb for a failed API call; capture server errors."""
    if not _initialized["value"]:
        return

    sentry_sdk.add_breadcrumb(
        category="api",
        message=f"{method} {path} -> {status}",
        level="error" if status >= _HTTP_SERVER_ERROR else "warning",
        data={"status": status},
    )
    if status >= _HTTP_SERVER_ERROR:
        sentry_sdk.capture_exception(error)
