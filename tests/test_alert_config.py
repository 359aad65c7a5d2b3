"""Tests for alert config validation and conversion."""

from __future__ import annotations

import dataclasses

import pytest

from nit_dashboard.alerts import (
    DEFAULT_ALERT_CONFIG,
    AlertConfig,
    parse_alert_config,
    validate_alert_config,
)
from nit_dashboard.alerts.config import from_api_response, parse_number, to_wire_payload


def _with(**changes: str) -> AlertConfig:
    return dataclasses.replace(DEFAULT_ALERT_CONFIG, **changes)


def test_defaults_are_valid() -> None:
    assert DEFAULT_ALERT_CONFIG.email_threshold_usd == "250"
    assert DEFAULT_ALERT_CONFIG.budget_alert_percent == "85"
    assert validate_alert_config(DEFAULT_ALERT_CONFIG) is None


@pytest.mark.parametrize(
    ("changes", "message"),
    [
        ({"budget_alert_percent": "150"}, "Budget alert percentage must be between 0 and 100"),
        ({"budget_alert_percent": "-1"}, "Budget alert percentage must be between 0 and 100"),
        ({"budget_alert_percent": "lots"}, "Budget alert percentage must be between 0 and 100"),
        ({"email_threshold_usd": "-5"}, "Email threshold must be a positive number"),
        ({"email_threshold_usd": "12abc"}, "Email threshold must be a positive number"),
        (
            {"slack_webhook": "https://example.com/hook"},
            "Slack webhook must be a valid Slack webhook URL",
        ),
    ],
)
def test_invalid_configs(changes: dict[str, str], message: str) -> None:
    assert validate_alert_config(_with(**changes)) == message


@pytest.mark.parametrize(
    "changes",
    [
        {"budget_alert_percent": "0"},
        {"budget_alert_percent": "100"},
        {"budget_alert_percent": ""},
        {"email_threshold_usd": ""},
        {"email_threshold_usd": "0"},
        {"slack_webhook": "https://hooks.slack.com/services/T000/B000/XXX"},
    ],
)
def test_valid_configs(changes: dict[str, str]) -> None:
    assert validate_alert_config(_with(**changes)) is None


def test_threshold_is_checked_before_percent() -> None:
    config = _with(email_threshold_usd="x", budget_alert_percent="150")

    assert validate_alert_config(config) == "Email threshold must be a positive number"


@pytest.mark.parametrize(
    ("text", "expected"), [("12.5", 12.5), (" 3 ", 3.0), ("nan", None), ("inf", None), ("", None)]
)
def test_parse_number(text: str, expected: float | None) -> None:
    assert parse_number(text) == expected


def test_parse_alert_config() -> None:
    parsed = parse_alert_config(
        _with(
            slack_webhook="  ",
            email_threshold_usd="0",
            budget_alert_percent="90",
            email_recipients="a@example.com, ,b@example.com ",
        )
    )

    assert parsed.slack_webhook is None
    assert parsed.email_threshold_usd is None
    assert parsed.budget_alert_percent == 90.0
    assert parsed.email_recipients == ["a@example.com", "b@example.com"]


def test_wire_payload_sends_empty_fields_as_null() -> None:
    payload = to_wire_payload(_with(email_threshold_usd="", resend_api_key="re_123"))

    assert payload == {
        "slackWebhook": None,
        "emailThresholdUsd": None,
        "budgetAlertPercent": 85.0,
        "emailRecipients": None,
        "resendApiKey": "re_123",
        "emailFromAddress": None,
    }


def test_from_api_response() -> None:
    config = from_api_response(
        {
            "slackWebhook": "https://hooks.slack.com/services/x",
            "emailThresholdUsd": 100,
            "budgetAlertPercent": 92.5,
            "emailRecipients": None,
            "emailFromAddress": "alerts@example.com",
        }
    )

    assert config == AlertConfig(
        slack_webhook="https://hooks.slack.com/services/x",
        email_threshold_usd="100",
        budget_alert_percent="92.5",
        email_recipients="",
        resend_api_key="",
        email_from_address="alerts@example.com",
    )


@pytest.mark.parametrize("raw", [None, {}, "nope"])
def test_from_api_response_defaults(raw: object) -> None:
    assert from_api_response(raw) == DEFAULT_ALERT_CONFIG
