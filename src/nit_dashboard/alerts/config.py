"""Alert configuration as edited by the operator.

Every field is kept as the text the operator typed; numbers are only parsed
when validating, when building the typed :class:`ParsedAlertConfig`, and when
sending the config to the platform.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from nit_dashboard.aggregation.normalize import as_record, numeric_from_unknown

SLACK_WEBHOOK_PREFIX = "https://hooks.slack.com/"
DEFAULT_EMAIL_THRESHOLD_USD = "250"
DEFAULT_BUDGET_ALERT_PERCENT = "85"

_MAX_PERCENT = 100.0


@dataclass(frozen=True)
class AlertConfig:
    """Text form of a project's alert settings."""

    slack_webhook: str = ""
    """Slack incoming-webhook URL."""

    email_threshold_usd: str = DEFAULT_EMAIL_THRESHOLD_USD
    """Spend in USD that triggers an email alert."""

    budget_alert_percent: str = DEFAULT_BUDGET_ALERT_PERCENT
    """Budget usage percentage (0-100) that triggers an alert."""

    email_recipients: str = ""
    """Comma-separated recipient addresses."""

    resend_api_key: str = ""
    """Resend API key used to send alert emails."""

    email_from_address: str = ""
    """Sender address, verified in Resend."""


DEFAULT_ALERT_CONFIG = AlertConfig()


@dataclass(frozen=True)
class ParsedAlertConfig:
    slack_webhook: str | None
    email_threshold_usd: float | None
    budget_alert_percent: float | None
    email_recipients: list[str] = field(default_factory=list)


def parse_number(text: str) -> float | None:
    """Parse *text* as a finite number; ``None`` when it is not one."""
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def validate_alert_config(config: AlertConfig) -> str | None:
    """Return the first validation error, or ``None`` when *config* is valid."""
    if config.email_threshold_usd:
        threshold = parse_number(config.email_threshold_usd)
        if threshold is None or threshold < 0:
            return "Email threshold must be a positive number"

    if config.budget_alert_percent:
        percent = parse_number(config.budget_alert_percent)
        if percent is None or not 0 <= percent <= _MAX_PERCENT:
            return "Budget alert percentage must be between 0 and 100"

    if config.slack_webhook and not config.slack_webhook.startswith(SLACK_WEBHOOK_PREFIX):
        return "Slack webhook must be a valid Slack webhook URL"

    return None


def _positive(text: str) -> float | None:
    value = parse_number(text)
    return value if value is not None and value > 0 else None


def parse_alert_config(config: AlertConfig) -> ParsedAlertConfig:
    """Typed view of *config*; zero or unparsable thresholds read as unset."""
    return ParsedAlertConfig(
        slack_webhook=config.slack_webhook.strip() or None,
        email_threshold_usd=_positive(config.email_threshold_usd),
        budget_alert_percent=_positive(config.budget_alert_percent),
        email_recipients=[
            email.strip() for email in config.email_recipients.split(",") if email.strip()
        ],
    )


def to_wire_payload(config: AlertConfig) -> dict[str, Any]:
    """Body for ``PUT /api/alert-config/{projectId}``; empty fields are sent as null."""
    return {
        "slackWebhook": config.slack_webhook or None,
        "emailThresholdUsd": (
            parse_number(config.email_threshold_usd) if config.email_threshold_usd else None
        ),
        "budgetAlertPercent": (
            parse_number(config.budget_alert_percent) if config.budget_alert_percent else None
        ),
        "emailRecipients": config.email_recipients or None,
        "resendApiKey": config.resend_api_key or None,
        "emailFromAddress": config.email_from_address or None,
    }


def _number_text(value: Any, default: str) -> str:
    number = numeric_from_unknown(value)
    if number is None:
        return default
    return str(int(number)) if number.is_integer() else str(number)


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ""


def from_api_response(raw: Any) -> AlertConfig:
    """Text form of the ``config`` object returned by the platform."""
    record = as_record(raw) or {}
    return AlertConfig(
        slack_webhook=_text(record, "slackWebhook"),
        email_threshold_usd=_number_text(
            record.get("emailThresholdUsd"), DEFAULT_EMAIL_THRESHOLD_USD
        ),
        budget_alert_percent=_number_text(
            record.get("budgetAlertPercent"), DEFAULT_BUDGET_ALERT_PERCENT
        ),
        email_recipients=_text(record, "emailRecipients"),
        resend_api_key=_text(record, "resendApiKey"),
        email_from_address=_text(record, "emailFromAddress"),
    )
