"""Workspace coordinator owning tabs, the split layout and the active selection."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence

from ..catalog.apps import AppCatalog, Application, SearchConfig
from ..catalog.defaults import DEFAULT_SPLIT_LAYOUT, DEFAULT_TABS
from ..services.storage import KeyValueStore
from ..ui.events import (
    ActivePaneChanged,
    ActiveTabChanged,
    EventBus,
    LayoutChanged,
    PaneContentChanged,
    PaneNewSessionRequested,
    PaneRefreshRequested,
    PaneSearchRequested,
    WorkspaceRestored,
)
from .layout import FIRST_PANE_ID, PLACEHOLDER_PANE_ID, LayoutError, Pane
from .tabs import PersistedTab, Tab, generate_pane_id, generate_tab_id

__all__ = ["WorkspaceCoordinator", "OpenResult", "TABS_KEY", "LAYOUT_KEY"]

LOGGER = logging.getLogger(__name__)

TABS_KEY = "tabs"
LAYOUT_KEY = "split_layout"


class OpenResult(str, Enum):
    """Outcome of the split-aware open operations."""

    OK = "ok"
    LIMIT = "limit"


class WorkspaceCoordinator:
    """Owns the tab collection, the layout tree and the active pane/tab.

    Every structural mutation (adding, removing, reordering or rebinding
    panes) is followed by a full snapshot written to ``store``. Commands for
    pane views are published on ``event_bus``; views filter them by pane id.

    All operations are synchronous and never raise on unknown ids: they
    simply do nothing. Only the fan-out commands are coroutines.
    """

    def __init__(
        self,
        catalog: AppCatalog,
        store: KeyValueStore,
        event_bus: EventBus | None = None,
        *,
        tab_id_factory: Callable[[Application], str] | None = None,
        pane_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._bus: EventBus = event_bus or EventBus()
        self._tab_id_factory = tab_id_factory or generate_tab_id
        self._pane_id_factory = pane_id_factory or generate_pane_id
        self._tabs: list[Tab] = []
        self._layout: Pane = Pane.split()
        self._active_tab_id: str | None = None
        self._active_pane_id: str | None = None
        self._restore()

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------
    def _restore(self) -> None:
        raw_tabs = self._store.get(TABS_KEY)
        if raw_tabs is not None and not isinstance(raw_tabs, list):
            LOGGER.warning("Ignoring malformed tab snapshot (%s)", type(raw_tabs).__name__)
            raw_tabs = None
        tabs, dropped = self._join_tabs(raw_tabs if raw_tabs is not None else DEFAULT_TABS)
        if not tabs:
            LOGGER.info("No restorable tabs; falling back to the default tab set")
            tabs, _ = self._join_tabs(DEFAULT_TABS)
        self._tabs = tabs
        self._layout = self._load_layout()
        self._repair_layout()

        first = self._first_single()
        self._active_pane_id = first.id if first else None
        self._active_tab_id = None
        LOGGER.debug(
            "Workspace restored: %d tab(s), %d pane(s), dropped=%s",
            len(self._tabs),
            len(self._layout.children),
            dropped,
        )
        self._bus.publish(
            WorkspaceRestored(
                tab_count=len(self._tabs),
                pane_count=len(self._layout.children),
                dropped_tab_ids=tuple(dropped),
            )
        )

    def _join_tabs(self, records: Iterable[Any]) -> tuple[list[Tab], list[str]]:
        tabs: list[Tab] = []
        dropped: list[str] = []
        seen: set[str] = set()
        for entry in records:
            record = PersistedTab.from_payload(entry) if isinstance(entry, Mapping) else None
            if record is None:
                LOGGER.warning("Skipping malformed tab record: %r", entry)
                continue
            app = self._catalog.get(record.app_id)
            if app is None:
                dropped.append(record.id)
                continue
            if record.id in seen:
                continue
            seen.add(record.id)
            tabs.append(Tab(id=record.id, app=app, title=record.title))
        return tabs, dropped

    def _load_layout(self) -> Pane:
        payload = self._store.get(LAYOUT_KEY)
        if payload is not None:
            try:
                root = Pane.from_payload(payload)
            except LayoutError as exc:
                LOGGER.warning("Persisted layout is invalid (%s); using the default layout", exc)
            else:
                if not root.is_single:
                    return root
                LOGGER.warning("Persisted layout root is not a split pane; using the default layout")
        return Pane.from_payload(DEFAULT_SPLIT_LAYOUT)

    def _repair_layout(self) -> None:
        known = {tab.id for tab in self._tabs}
        bound: set[str] = set()
        for pane in self._layout.singles():
            if not pane.tab_id:
                continue
            if pane.tab_id not in known or pane.tab_id in bound:
                LOGGER.debug("Clearing stale binding %s from pane %s", pane.tab_id, pane.id)
                pane.tab_id = None
                continue
            bound.add(pane.tab_id)
        if not self._layout.children:
            self._layout.children.append(Pane.single(PLACEHOLDER_PANE_ID))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def catalog(self) -> AppCatalog:
        return self._catalog

    @property
    def tabs(self) -> list[Tab]:
        return list(self._tabs)

    @property
    def layout(self) -> Pane:
        """The live layout root. Mutate it only through coordinator operations."""

        return self._layout

    @property
    def active_tab_id(self) -> str | None:
        return self._active_tab_id

    @property
    def active_pane_id(self) -> str | None:
        return self._active_pane_id

    def get_tab(self, tab_id: str) -> Tab | None:
        for tab in self._tabs:
            if tab.id == tab_id:
                return tab
        return None

    def find_pane(self, pane_id: str) -> Pane | None:
        for pane in self._layout.children:
            if pane.id == pane_id:
                return pane
        return None

    def find_pane_by_tab_id(self, tab_id: str) -> Pane | None:
        for pane in self._layout.singles():
            if pane.tab_id == tab_id:
                return pane
        return None

    def panes_with_tabs(self) -> list[Pane]:
        return [pane for pane in self._layout.singles() if pane.tab_id]

    def is_tab_open(self, app_id: str) -> bool:
        return any(tab.app.id == app_id for tab in self._tabs)

    def find_existing_tab(self, app: Application) -> Tab | None:
        """Return the first tab showing ``app``, matched by id or by URL."""

        for tab in self._tabs:
            if tab.app.id == app.id or tab.app.url == app.url:
                return tab
        return None

    def get_app_search_config(self, app_id: str) -> SearchConfig:
        return self._catalog.search_config_for(app_id)

    def snapshot(self) -> dict[str, Any]:
        """Return the persisted representation of tabs and layout."""

        return {
            TABS_KEY: [tab.to_persisted().to_payload() for tab in self._tabs],
            LAYOUT_KEY: self._layout.to_payload(),
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def persist_state(self) -> None:
        """Write the full tab and layout snapshot.

        Also the flush point for pane sizes recorded by :meth:`set_pane_sizes`,
        so callers should invoke it on teardown.
        """

        snapshot = self.snapshot()
        self._store.set(TABS_KEY, snapshot[TABS_KEY])
        self._store.set(LAYOUT_KEY, snapshot[LAYOUT_KEY])
        self._bus.publish(
            LayoutChanged(
                pane_ids=tuple(pane.id for pane in self._layout.children),
                tab_count=len(self._tabs),
            )
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def set_active_pane(self, pane_id: str) -> None:
        pane = self.find_pane(pane_id)
        if pane is not None and pane.is_single:
            self._set_active_pane(pane_id)

    def _set_active_pane(self, pane_id: str | None) -> None:
        if self._active_pane_id == pane_id:
            return
        self._active_pane_id = pane_id
        self._bus.publish(ActivePaneChanged(pane_id=pane_id))

    def _set_active_tab(self, tab_id: str | None) -> None:
        if self._active_tab_id == tab_id:
            return
        self._active_tab_id = tab_id
        self._bus.publish(ActiveTabChanged(tab_id=tab_id))

    # ------------------------------------------------------------------
    # Tab lifecycle
    # ------------------------------------------------------------------
    def add_tab(self, app: Application) -> str:
        """Open ``app`` in a new tab, or activate the tab already showing it."""

        for existing in self._tabs:
            if existing.app.id == app.id:
                self._set_active_tab(existing.id)
                return existing.id

        tab = Tab(id=self._tab_id_factory(app), app=app)
        self._tabs.append(tab)
        self._set_active_tab(tab.id)
        self.ensure_tab_in_active_pane(tab.id)
        self.persist_state()
        LOGGER.debug("Added tab %s for %s", tab.id, app.id)
        return tab.id

    def remove_tab(self, tab_id: str) -> None:
        """Clear a tab from the layout and close the pane that showed it.

        The tab itself stays in the collection, unbound, until something
        reopens it. When its pane is the only pane left that pane is emptied
        instead of closed. A tab no pane shows leaves the workspace untouched.
        """

        if self.get_tab(tab_id) is None:
            return
        pane = self.find_pane_by_tab_id(tab_id)
        if pane is None:
            return
        self._bind(pane, None)
        if len(self._layout.children) > 1:
            self.close_pane(pane.id)
            return
        self.persist_state()

    def switch_tab(self, tab_id: str) -> None:
        if self.get_tab(tab_id) is None:
            return
        self._set_active_tab(tab_id)
        if self.ensure_tab_in_active_pane(tab_id, prefer_existing=True):
            self.persist_state()

    def _discard_tab(self, tab_id: str) -> None:
        self._tabs = [tab for tab in self._tabs if tab.id != tab_id]
        if self._active_tab_id == tab_id:
            self._set_active_tab(self._tabs[0].id if self._tabs else None)

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------
    def ensure_tab_in_active_pane(self, tab_id: str, prefer_existing: bool = False) -> bool:
        """Make sure some pane shows ``tab_id``.

        Tries, in order: leave it where it is (``prefer_existing`` only), the
        first empty pane, a freshly created pane when there are none, and
        finally the first pane, whose current tab is evicted.

        Returns:
            True if a binding changed.
        """

        if prefer_existing and self.find_pane_by_tab_id(tab_id) is not None:
            return False

        children = self._layout.children
        for pane in children:
            if pane.is_empty:
                self._bind(pane, tab_id)
                return True

        if not children:
            pane = Pane.single(FIRST_PANE_ID)
            children.append(pane)
            self._bind(pane, tab_id)
            return True

        first = children[0]
        if not first.is_single:
            return False
        if first.tab_id != tab_id:
            LOGGER.warning("No empty pane for tab %s; replacing %s in pane %s", tab_id, first.tab_id, first.id)
        self._bind(first, tab_id)
        return True

    def _bind(self, target: Pane, tab_id: str | None) -> None:
        if tab_id is not None:
            for pane in self._layout.singles():
                if pane is not target and pane.tab_id == tab_id:
                    pane.tab_id = None
                    self._bus.publish(PaneContentChanged(pane_id=pane.id, tab_id=None))
        target.tab_id = tab_id
        tab = self.get_tab(tab_id) if tab_id else None
        self._bus.publish(
            PaneContentChanged(pane_id=target.id, tab_id=tab_id, url=tab.app.url if tab else None)
        )

    # ------------------------------------------------------------------
    # Split-aware opening
    # ------------------------------------------------------------------
    def open_app_with_split(self, app: Application, max_panels: int) -> OpenResult:
        """Open ``app`` in its own pane, growing the layout up to ``max_panels``.

        An app that is already open is focused and refreshed instead.
        """

        existing = self.find_existing_tab(app)
        if existing is not None:
            self._reveal(existing)
            return OpenResult.OK

        children = self._layout.children
        if not any(pane.is_empty for pane in children):
            if len(children) >= max_panels:
                LOGGER.info("Cannot open %s: %d pane(s) already open", app.id, len(children))
                return OpenResult.LIMIT
            self.add_panel()

        self.add_tab(app)
        return OpenResult.OK

    def open_website_with_split(self, app: Application) -> OpenResult:
        """Show an ordinary page, reusing a pane rather than adding one.

        The target is the first empty pane, else the active pane, else the
        first pane. A tab already bound there is repointed at ``app`` in place
        so its id stays valid.
        """

        existing = self.find_existing_tab(app)
        if existing is not None:
            self._reveal(existing)
            return OpenResult.OK

        singles = self._layout.singles()
        target = next((pane for pane in singles if pane.is_empty), None)
        if target is None and self._active_pane_id is not None:
            target = next((pane for pane in singles if pane.id == self._active_pane_id), None)
        if target is None and singles:
            target = singles[0]
        if target is None:
            return OpenResult.OK

        tab = self.get_tab(target.tab_id) if target.tab_id else None
        if tab is not None:
            tab.rebind(app)
            self._bus.publish(PaneContentChanged(pane_id=target.id, tab_id=tab.id, url=app.url))
        else:
            tab = Tab(id=self._tab_id_factory(app), app=app)
            self._tabs.append(tab)
            self._bind(target, tab.id)

        self._set_active_tab(tab.id)
        self._set_active_pane(target.id)
        self.persist_state()
        return OpenResult.OK

    def refresh_tab(self, tab_id: str) -> bool:
        pane = self.find_pane_by_tab_id(tab_id)
        if pane is None:
            return False
        self._bus.publish(PaneRefreshRequested(pane_id=pane.id))
        return True

    def _reveal(self, tab: Tab) -> None:
        changed = self.ensure_tab_in_active_pane(tab.id, prefer_existing=True)
        self._set_active_tab(tab.id)
        pane = self.find_pane_by_tab_id(tab.id)
        if pane is not None:
            self._set_active_pane(pane.id)
        self.refresh_tab(tab.id)
        if changed:
            self.persist_state()

    # ------------------------------------------------------------------
    # Pane structure
    # ------------------------------------------------------------------
    def add_panel(self) -> str:
        """Append an empty pane and make it active."""

        pane = Pane.single(self._pane_id_factory())
        self._layout.children.append(pane)
        self._set_active_pane(pane.id)
        self.persist_state()
        return pane.id

    def close_pane(self, pane_id: str) -> bool:
        """Remove a pane and delete the tab it showed.

        Closing the last pane leaves a single empty placeholder pane behind.
        """

        children = self._layout.children
        index = self._layout.child_index(pane_id)
        if index == -1:
            return False

        pane = children.pop(index)
        tab_id = pane.tab_id if pane.is_single else None
        if not children:
            children.append(Pane.single(PLACEHOLDER_PANE_ID))

        if self._active_pane_id == pane_id:
            first = self._first_single()
            # The placeholder may reuse the closed id; force a change notification.
            self._active_pane_id = None
            self._set_active_pane(first.id if first else None)

        if tab_id:
            self._discard_tab(tab_id)

        self.persist_state()
        return True

    def move_pane(self, source_pane_id: str, target_pane_id: str) -> bool:
        """Move the source pane to the target's position (splice, not swap)."""

        if source_pane_id == target_pane_id:
            return False
        children = self._layout.children
        from_index = self._layout.child_index(source_pane_id)
        to_index = self._layout.child_index(target_pane_id)
        if from_index == -1 or to_index == -1:
            return False
        moved = children.pop(from_index)
        children.insert(to_index, moved)
        self.persist_state()
        return True

    def set_pane_sizes(self, sizes: Sequence[float]) -> None:
        """Record pane widths (percentages) without persisting.

        Resizing fires continuously while dragging, so sizes are written by
        the next :meth:`persist_state` call instead.
        """

        children = self._layout.children
        for index in range(min(len(children), len(sizes))):
            pane = children[index]
            if pane.is_single:
                pane.size = float(sizes[index])

    def _first_single(self) -> Pane | None:
        singles = self._layout.singles()
        return singles[0] if singles else None

    # ------------------------------------------------------------------
    # Fan-out commands
    # ------------------------------------------------------------------
    async def search_all_apps(self, text: str) -> int:
        """Send ``text`` to every searchable pane.

        Returns:
            The number of panes a search command was issued to.
        """

        targets = self._fan_out_targets()
        if not targets:
            LOGGER.warning("Search requested but no searchable application is open")
            return 0
        commands = [
            self.send_search_to_pane(pane.id, text, self.get_app_search_config(tab.app.id))
            for pane, tab in targets
        ]
        return await self._settle("search", [pane.id for pane, _ in targets], commands)

    async def create_new_session_for_all(self) -> int:
        """Start a new conversation in every searchable pane."""

        targets = self._fan_out_targets()
        if not targets:
            return 0
        commands = [
            self.send_new_session_to_pane(pane.id, self._catalog.new_session_selectors_for(tab.app.id))
            for pane, tab in targets
        ]
        return await self._settle("new-session", [pane.id for pane, _ in targets], commands)

    async def send_search_to_pane(self, pane_id: str, text: str, config: SearchConfig) -> None:
        LOGGER.debug("Dispatching search to pane %s (input=%s)", pane_id, config.input_selector)
        self._bus.publish(PaneSearchRequested(pane_id=pane_id, text=text, config=config))

    async def send_new_session_to_pane(self, pane_id: str, selectors: Sequence[str] = ()) -> None:
        LOGGER.debug("Dispatching new-session to pane %s", pane_id)
        self._bus.publish(PaneNewSessionRequested(pane_id=pane_id, selectors=tuple(selectors)))

    def _fan_out_targets(self) -> list[tuple[Pane, Tab]]:
        targets: list[tuple[Pane, Tab]] = []
        for pane in self.panes_with_tabs():
            tab = self.get_tab(pane.tab_id or "")
            if tab is None:
                LOGGER.warning("Pane %s is bound to unknown tab %s", pane.id, pane.tab_id)
                continue
            if tab.app.no_search:
                LOGGER.debug("Skipping %s in pane %s: not part of unified search", tab.app.id, pane.id)
                continue
            targets.append((pane, tab))
        return targets

    async def _settle(
        self,
        command: str,
        pane_ids: Sequence[str],
        dispatches: Sequence[Awaitable[None]],
    ) -> int:
        results = await asyncio.gather(*dispatches, return_exceptions=True)
        for pane_id, result in zip(pane_ids, results):
            if isinstance(result, BaseException):
                LOGGER.warning("%s command for pane %s failed: %s", command, pane_id, result)
        LOGGER.info("Issued %s command to %d pane(s)", command, len(dispatches))
        return len(dispatches)
