"""Debounced, auto-saving alert settings for one project."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from nit_dashboard.alerts.config import (
    DEFAULT_ALERT_CONFIG,
    AlertConfig,
    from_api_response,
    to_wire_payload,
    validate_alert_config,
)
from nit_dashboard.utils.platform_client import PlatformApiError

if TYPE_CHECKING:
    from nit_dashboard.utils.platform_client import PlatformApiClient

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class ControllerState(Enum):
    LOADING = "loading"
    IDLE = "idle"
    CLOSED = "closed"


class AlertConfigController:
    """Holds the editable alert config of a project and saves it after a quiet period.

    The controller starts in ``LOADING``. Edits made before :meth:`load`
    finishes are kept but neither validated nor saved. Once ``IDLE``, every
    valid edit (re)starts the debounce timer, so only the latest config is
    saved; an invalid edit cancels any pending save and exposes the message
    through :attr:`validation_error`.

    :meth:`update` schedules the save with :func:`asyncio.create_task`, so it
    must be called from code running inside the event loop.
    """

    def __init__(
        self,
        client: PlatformApiClient,
        project_id: str,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._client = client
        self._project_id = project_id
        self._debounce_seconds = debounce_seconds
        self._config = DEFAULT_ALERT_CONFIG
        self._state = ControllerState.LOADING
        self._validation_error: str | None = None
        self._pending: asyncio.Task[None] | None = None
        self.last_save_error: PlatformApiError | None = None
        self.save_count = 0

    @property
    def config(self) -> AlertConfig:
        return self._config

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state is ControllerState.LOADING

    @property
    def validation_error(self) -> str | None:
        return self._validation_error

    @property
    def save_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def load(self) -> AlertConfig:
        """Fetch the stored config; defaults are used when none can be loaded."""
        try:
            raw = await asyncio.to_thread(self._client.get_alert_config, self._project_id)
            loaded = from_api_response(raw)
        except PlatformApiError as exc:
            logger.debug("Using default alert config for %s: %s", self._project_id, exc)
            loaded = DEFAULT_ALERT_CONFIG

        if self._state is ControllerState.CLOSED:
            return self._config

        self._config = loaded
        self._state = ControllerState.IDLE
        return loaded

    def update(self, config: AlertConfig | None = None, **changes: Any) -> str | None:
        """Replace the config, or change individual fields.

        Returns:
            The validation message, or ``None`` when the edit is valid (or was
            made while still loading).
        """
        if self._state is ControllerState.CLOSED:
            logger.debug("Ignoring alert config edit after close")
            return None

        base = config if config is not None else self._config
        self._config = dataclasses.replace(base, **changes) if changes else base

        if self._state is ControllerState.LOADING:
            return None

        self._validation_error = validate_alert_config(self._config)
        self._cancel_pending()
        if self._validation_error is None:
            self._pending = asyncio.create_task(self._save_after_delay(self._config))
        return self._validation_error

    async def _save_after_delay(self, config: AlertConfig) -> None:
        await asyncio.sleep(self._debounce_seconds)
        await self._save(config)

    async def _save(self, config: AlertConfig) -> None:
        try:
            await asyncio.to_thread(
                self._client.update_alert_config, self._project_id, to_wire_payload(config)
            )
        except PlatformApiError as exc:
            self.last_save_error = exc
            logger.error("Failed to save alert config for %s: %s", self._project_id, exc)
            return

        self.last_save_error = None
        self.save_count += 1
        logger.debug("Saved alert config for %s", self._project_id)

    async def flush(self) -> None:
        """Wait for a scheduled save to complete."""
        if self._pending is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._pending

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def close(self) -> None:
        """Stop the controller; a save that has not fired yet is dropped."""
        self._cancel_pending()
        self._state = ControllerState.CLOSED
