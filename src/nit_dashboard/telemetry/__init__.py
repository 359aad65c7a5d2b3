"""Telemetry integrations for nit-dashboard."""

from nit_dashboard.telemetry.sentry_integration import (
    init_sentry,
    is_sentry_enabled,
    record_api_failure,
)

__all__ = [
    "init_sentry",
    "is_sentry_enabled",
    "record_api_failure",
]
