"""Navigation and theme preferences kept in local storage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nit_dashboard.memory.store import read_stored_json, state_key

if TYPE_CHECKING:
    from nit_dashboard.memory.store import KeyValueStore

logger = logging.getLogger(__name__)

MAX_RECENT_PROJECTS = 5
RECENT_PROJECTS_KEY = state_key("recentProjects")
SIDEBAR_COLLAPSED_KEY = state_key("sidebarCollapsed")
THEME_KEY = state_key("theme")

THEMES = ("light", "dark", "system")
DEFAULT_THEME = "system"


class NavigationState:
    """Recently visited projects and sidebar state."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def recent_projects(self) -> list[str]:
        raw = read_stored_json(self._store, RECENT_PROJECTS_KEY, [])
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, str)][:MAX_RECENT_PROJECTS]

    def add_recent_project(self, project_id: str) -> list[str]:
        """Move *project_id* to the front of the recent list, keeping at most five."""
        recent = [project_id, *(pid for pid in self.recent_projects if pid != project_id)]
        updated = recent[:MAX_RECENT_PROJECTS]
        self._store.set(RECENT_PROJECTS_KEY, updated)
        return updated

    @property
    def sidebar_collapsed(self) -> bool:
        return read_stored_json(self._store, SIDEBAR_COLLAPSED_KEY, False) is True

    def toggle_sidebar(self) -> bool:
        collapsed = not self.sidebar_collapsed
        self._store.set(SIDEBAR_COLLAPSED_KEY, collapsed)
        return collapsed


class ThemePreference:
    """``light``, ``dark`` or ``system``; anything else reads as ``system``."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def theme(self) -> str:
        value = self._store.get(THEME_KEY)
        return value if value in THEMES else DEFAULT_THEME

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}; expected one of {', '.join(THEMES)}")
        self._store.set(THEME_KEY, theme)
        logger.debug("Theme set to %s", theme)
