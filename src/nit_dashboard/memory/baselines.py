"""Accepted drift baselines, stored client-side per project.

Accepting a baseline marks a drift test's current output as known-good from
the operator's point of view. The platform is never told; the marker lives in
the local key/value store under ``nit:drift:baselines:<project_id>``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from nit_dashboard.aggregation.drift import merge_baselines
from nit_dashboard.memory.store import state_key

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from nit_dashboard.aggregation.drift import DriftRow
    from nit_dashboard.memory.store import KeyValueStore
    from nit_dashboard.models.reports import DriftResult

logger = logging.getLogger(__name__)


def baseline_key(project_id: str) -> str:
    return state_key("drift", "baselines", project_id)


class BaselineStore:
    """Drift test name → ISO timestamp of acceptance, for one project.

    Entries are only ever added or refreshed; nothing is removed.
    """

    def __init__(self, store: KeyValueStore, project_id: str) -> None:
        """Load the project's baselines.

        Args:
            store: Local key/value storage.
            project_id: Platform project the baselines belong to.
        """
        self._store = store
        self._key = baseline_key(project_id)
        self._baselines: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        raw = self._store.get(self._key)
        if not isinstance(raw, dict):
            return

        self._baselines = {
            name: accepted_at
            for name, accepted_at in raw.items()
            if isinstance(name, str) and isinstance(accepted_at, str)
        }

    def accept(self, test_name: str, *, now: datetime | None = None) -> str:
        """Mark *test_name*'s current output as the accepted baseline.

        Args:
            test_name: Drift test name.
            now: Acceptance time, defaults to the current UTC time.

        Returns:
            The stored ISO timestamp.
        """
        accepted_at = (now or datetime.now(UTC)).isoformat()
        self._baselines = {**self._baselines, test_name: accepted_at}
        self._store.set(self._key, self._baselines)
        logger.info("Accepted drift baseline for %s", test_name)
        return accepted_at

    def get(self, test_name: str) -> str | None:
        return self._baselines.get(test_name)

    @property
    def baselines(self) -> Mapping[str, str]:
        """Read-only view of the accepted baselines."""
        return dict(self._baselines)

    def merge(self, results: Sequence[DriftResult]) -> list[DriftRow]:
        """Annotate the latest result of each test with its baseline, if any."""
        return merge_baselines(results, self._baselines)
