"""Service layer: settings, persistence adapters and search history."""

from .history import HistoryRecord, SearchHistory
from .settings import Settings, SettingsStore
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "HistoryRecord",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "SearchHistory",
    "Settings",
    "SettingsStore",
]
