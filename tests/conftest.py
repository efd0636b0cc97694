"""Shared pytest fixtures."""

from __future__ import annotations

import itertools
from typing import Any, Callable

import pytest

from splitdeck.catalog import AppCatalog, Application, build_default_catalog
from splitdeck.services.storage import MemoryStore
from splitdeck.ui.events import EventBus
from splitdeck.workspace import WorkspaceCoordinator

CoordinatorFactory = Callable[..., WorkspaceCoordinator]


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in (
        "SPLITDECK_DATA_DIR",
        "SPLITDECK_CATALOG",
        "SPLITDECK_DEBUG",
        "SPLITDECK_DEBUG_LOGGING",
        "SPLITDECK_MAX_PANELS",
        "SPLITDECK_HISTORY_LIMIT",
        "SPLITDECK_SETTINGS_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPLITDECK_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def catalog() -> AppCatalog:
    return build_default_catalog()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def make_coordinator(catalog: AppCatalog, bus: EventBus) -> CoordinatorFactory:
    """Build coordinators with predictable tab and pane ids.

    Tab ids are ``<app>-t<n>`` and pane ids ``pane-n<n>``.
    """

    def factory(store: MemoryStore | None = None, **initial: Any) -> WorkspaceCoordinator:
        counter = itertools.count(1)

        def tab_id(app: Application) -> str:
            return f"{app.id}-t{next(counter)}"

        def pane_id() -> str:
            return f"pane-n{next(counter)}"

        active_store = store if store is not None else MemoryStore(initial or None)
        return WorkspaceCoordinator(
            catalog,
            active_store,
            bus,
            tab_id_factory=tab_id,
            pane_id_factory=pane_id,
        )

    return factory


@pytest.fixture
def empty_workspace() -> dict[str, Any]:
    """A stored workspace with one unbound tab and a single empty pane."""

    return {
        "tabs": [{"id": "github-0", "applicationId": "github", "title": "GitHub"}],
        "split_layout": {
            "id": "root",
            "type": "split",
            "direction": "horizontal",
            "children": [{"id": "pane-empty", "type": "single", "tabId": None}],
        },
    }
