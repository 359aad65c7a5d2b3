"""Client-local dashboard state and project memory loading."""

from nit_dashboard.memory.baselines import BaselineStore
from nit_dashboard.memory.loader import MemoryState, load_memory_state, parse_memory_from_report
from nit_dashboard.memory.navigation import NavigationState, ThemePreference
from nit_dashboard.memory.store import InMemoryStore, JsonFileStore, KeyValueStore

__all__ = [
    "BaselineStore",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryState",
    "NavigationState",
    "ThemePreference",
    "load_memory_state",
    "parse_memory_from_report",
]
