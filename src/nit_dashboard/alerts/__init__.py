"""Per-project alert settings: validation, wire format and debounced saving."""

from nit_dashboard.alerts.config import (
    DEFAULT_ALERT_CONFIG,
    AlertConfig,
    ParsedAlertConfig,
    parse_alert_config,
    validate_alert_config,
)
from nit_dashboard.alerts.controller import AlertConfigController, ControllerState

__all__ = [
    "DEFAULT_ALERT_CONFIG",
    "AlertConfig",
    "AlertConfigController",
    "ControllerState",
    "ParsedAlertConfig",
    "parse_alert_config",
    "validate_alert_config",
]
