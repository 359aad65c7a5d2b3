"""Client-local key/value persistence for dashboard state.

Dashboard state (recent projects, accepted drift baselines, theme ...) is
stored under ``nit:``-prefixed keys. The storage medium is injected through
the :class:`KeyValueStore` protocol; :class:`JsonFileStore` keeps every key in
a single JSON document on disk.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

KEY_PREFIX = "nit:"

# Default state file relative to the user's home directory
DEFAULT_STATE_FILE = ".nit/dashboard_state.json"


def state_key(*parts: str) -> str:
    """Build a namespaced key: ``state_key("drift", "baselines", pid)``."""
    return KEY_PREFIX + ":".join(parts)


class KeyValueStore(Protocol):
    """Minimal storage capability used by the stateful controllers."""

    def get(self, key: str) -> Any | None:
        """Return the JSON value stored under *key*, or ``None``."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable *value* under *key*."""
        ...


class InMemoryStore:
    """Process-local store; nothing survives the process."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStore:
    """JSON-file backed store.

    The whole document is re-read on every ``get`` so that several processes
    (or CLI invocations) see each other's writes. A missing or corrupt file
    reads as empty.
    """

    def __init__(self, file_path: Path) -> None:
        """Initialize the store.

        Args:
            file_path: Location of the JSON document.
        """
        self._file_path = file_path

    @classmethod
    def default(cls) -> JsonFileStore:
        """Store at ``~/.nit/dashboard_state.json``."""
        return cls(Path.home() / DEFAULT_STATE_FILE)

    def _load(self) -> dict[str, Any]:
        if not self._file_path.exists():
            return {}

        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable dashboard state %s: %s", self._file_path, exc)
            return {}

        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value

        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.debug("Saved %s to %s", key, self._file_path)

    @property
    def file_path(self) -> Path:
        """Path to the JSON document."""
        return self._file_path


def read_stored_json(store: KeyValueStore, key: str, fallback: Any) -> Any:
    """Read *key* from *store*, returning *fallback* when it is missing."""
    value = store.get(key)
    return fallback if value is None else value
