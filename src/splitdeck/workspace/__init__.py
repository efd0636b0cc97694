"""Workspace package: layout tree, tab records and the coordinator."""

from .coordinator import LAYOUT_KEY, TABS_KEY, OpenResult, WorkspaceCoordinator
from .layout import Pane
from .tabs import PersistedTab, Tab

__all__ = [
    "LAYOUT_KEY",
    "TABS_KEY",
    "OpenResult",
    "Pane",
    "PersistedTab",
    "Tab",
    "WorkspaceCoordinator",
]
