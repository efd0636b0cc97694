"""Shared test helpers.

Import from here instead of duplicating recorder classes in test files.
"""

from __future__ import annotations

from splitdeck.ui.events import (
    Event,
    EventBus,
    PaneContentChanged,
    PaneNewSessionRequested,
    PaneRefreshRequested,
    PaneSearchRequested,
)
from splitdeck.workspace import WorkspaceCoordinator

PANE_COMMANDS: tuple[type[Event], ...] = (
    PaneRefreshRequested,
    PaneSearchRequested,
    PaneNewSessionRequested,
)


class CommandRecorder:
    """Subscribes to every pane command and keeps them in publish order."""

    def __init__(self, bus: EventBus, *event_types: type[Event]) -> None:
        self.events: list[Event] = []
        for event_type in event_types or PANE_COMMANDS:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: type[Event]) -> list[Event]:
        return [event for event in self.events if isinstance(event, event_type)]

    def pane_ids(self, event_type: type[Event]) -> list[str]:
        return [getattr(event, "pane_id") for event in self.of_type(event_type)]


class ContentRecorder(CommandRecorder):
    def __init__(self, bus: EventBus) -> None:
        super().__init__(bus, PaneContentChanged)


def bindings(coordinator: WorkspaceCoordinator) -> list[tuple[str, str | None]]:
    """Return ``(pane_id, tab_id)`` for each pane in display order."""

    return [(pane.id, pane.tab_id) for pane in coordinator.layout.children]


def tab_ids(coordinator: WorkspaceCoordinator) -> list[str]:
    return [tab.id for tab in coordinator.tabs]


def assert_no_aliasing(coordinator: WorkspaceCoordinator) -> None:
    bound = [pane.tab_id for pane in coordinator.layout.singles() if pane.tab_id]
    assert len(bound) == len(set(bound)), f"tab bound to several panes: {bound}"
