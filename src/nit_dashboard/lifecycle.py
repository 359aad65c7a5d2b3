"""Load lifecycle shared by every view.

A view load is started inside a :class:`LoadScope`. Closing the scope (the
view was left, or the project changed) makes any result that resolves later a
no-op, so a stale response can never overwrite newer state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from nit_dashboard.utils.platform_client import PlatformApiError

if TYPE_CHECKING:
    from collections.abc import Awaitable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass
class LoadState(Generic[T]):
    """Status, data and error message of one view load."""

    status: LoadStatus = LoadStatus.IDLE
    data: T | None = None
    error: str | None = None
    unauthorized: bool = False
    """True when the platform rejected the credentials (HTTP 401)."""

    @property
    def is_ready(self) -> bool:
        return self.status is LoadStatus.READY

    def start(self) -> None:
        self.status = LoadStatus.LOADING
        self.error = None
        self.unauthorized = False

    def succeed(self, data: T) -> None:
        self.status = LoadStatus.READY
        self.data = data
        self.error = None

    def fail(self, error: Exception) -> None:
        self.status = LoadStatus.ERROR
        self.data = None
        self.error = str(error) or type(error).__name__
        self.unauthorized = isinstance(error, PlatformApiError) and error.is_unauthorized


class LoadScope:
    """Cancellation flag for in-flight loads."""

    def __init__(self) -> None:
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        self._active = False

    async def run(self, state: LoadState[T], work: Awaitable[T]) -> LoadState[T]:
        """Await *work* and record its outcome in *state* while the scope is active.

        Platform and transport errors become an ``error`` state; results that
        arrive after :meth:`close` are dropped.
        """
        if self._active:
            state.start()

        try:
            data = await work
        except (PlatformApiError, ValueError) as exc:
            if self._active:
                logger.debug("Load failed: %s", exc)
                state.fail(exc)
            return state

        if self._active:
            state.succeed(data)
        else:
            logger.debug("Discarding result that arrived after the scope closed")
        return state
