"""Reference pane view driving one embedded page from bus commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from .events import (
    Event,
    EventBus,
    PaneContentChanged,
    PaneNewSessionRequested,
    PaneRefreshRequested,
    PaneSearchRequested,
)
from .page_scripts import build_new_session_script, build_search_script

__all__ = ["PageHost", "PaneView", "RecordingPageHost"]

LOGGER = logging.getLogger(__name__)


class PageHost(Protocol):
    """The embedding surface for one hosted page (a webview, a browser tab...)."""

    def load(self, url: str) -> None:  # pragma: no cover - protocol
        ...

    def run_script(self, script: str) -> Any:  # pragma: no cover - protocol
        ...


class PaneView:
    """Applies pane-scoped commands to a :class:`PageHost`.

    The view subscribes to every command on the bus and ignores those
    addressed to other panes, so a command still in flight for a pane that
    has since been closed is dropped here. Host failures are logged and
    never reach the coordinator.
    """

    def __init__(self, pane_id: str, host: PageHost, bus: EventBus, *, url: str | None = None) -> None:
        self.pane_id = pane_id
        self._host = host
        self._bus = bus
        self._url = url
        self._closed = False
        self.received: list[Event] = []
        bus.subscribe(PaneRefreshRequested, self._on_refresh)
        bus.subscribe(PaneSearchRequested, self._on_search)
        bus.subscribe(PaneNewSessionRequested, self._on_new_session)
        bus.subscribe(PaneContentChanged, self._on_content_changed)
        if url:
            self._call(self._host.load, url)

    @property
    def url(self) -> str | None:
        return self._url

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._bus.unsubscribe(PaneRefreshRequested, self._on_refresh)
        self._bus.unsubscribe(PaneSearchRequested, self._on_search)
        self._bus.unsubscribe(PaneNewSessionRequested, self._on_new_session)
        self._bus.unsubscribe(PaneContentChanged, self._on_content_changed)

    def _accepts(self, event: Event) -> bool:
        if self._closed or getattr(event, "pane_id", None) != self.pane_id:
            return False
        self.received.append(event)
        return True

    def _on_refresh(self, event: PaneRefreshRequested) -> None:
        if self._accepts(event) and self._url:
            self._call(self._host.load, self._url)

    def _on_search(self, event: PaneSearchRequested) -> None:
        if self._accepts(event):
            self._call(self._host.run_script, build_search_script(event.text, event.config))

    def _on_new_session(self, event: PaneNewSessionRequested) -> None:
        if self._accepts(event):
            self._call(self._host.run_script, build_new_session_script(event.selectors))

    def _on_content_changed(self, event: PaneContentChanged) -> None:
        if not self._accepts(event):
            return
        self._url = event.url
        if event.url:
            self._call(self._host.load, event.url)

    def _call(self, method: Any, argument: str) -> None:
        try:
            method(argument)
        except Exception as exc:
            LOGGER.warning("Pane %s host call %s failed: %s", self.pane_id, getattr(method, "__name__", method), exc)


@dataclass(slots=True)
class _HostCall:
    action: str
    argument: str


class RecordingPageHost:
    """A :class:`PageHost` that only records calls; used headless and in tests."""

    def __init__(self) -> None:
        self.calls: list[_HostCall] = []

    def load(self, url: str) -> None:
        self.calls.append(_HostCall("load", url))

    def run_script(self, script: str) -> None:
        self.calls.append(_HostCall("run_script", script))
