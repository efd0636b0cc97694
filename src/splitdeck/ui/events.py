"""Typed event channel between the workspace coordinator and pane views.

The coordinator never talks to a pane view directly. It publishes
pane-scoped command events on an :class:`EventBus`; every view subscribes
globally and ignores events whose ``pane_id`` is not its own.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

    from ..catalog.apps import SearchConfig


logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for every event published on the bus.

    Subclasses are ``@dataclass(slots=True)`` records::

        @dataclass(slots=True)
        class PaneRefreshRequested(Event):
            pane_id: str
    """

    pass


# =============================================================================
# Pane commands
# =============================================================================


@dataclass(slots=True)
class PaneRefreshRequested(Event):
    """Ask the view hosting ``pane_id`` to reload its page.

    Attributes:
        pane_id: Identifier of the addressed pane.
    """

    pane_id: str


@dataclass(slots=True)
class PaneSearchRequested(Event):
    """Ask the view hosting ``pane_id`` to type ``text`` into its chat box and submit.

    Attributes:
        pane_id: Identifier of the addressed pane.
        text: The text to submit.
        config: Resolved selector configuration for the pane's application.
    """

    pane_id: str
    text: str
    config: SearchConfig


@dataclass(slots=True)
class PaneNewSessionRequested(Event):
    """Ask the view hosting ``pane_id`` to start a fresh conversation.

    Attributes:
        pane_id: Identifier of the addressed pane.
        selectors: Ordered candidates for the "new chat" control.
    """

    pane_id: str
    selectors: tuple[str, ...] = ()


# =============================================================================
# Workspace notifications
# =============================================================================


@dataclass(slots=True)
class PaneContentChanged(Event):
    """Emitted when a pane starts showing a different tab or application.

    Attributes:
        pane_id: Identifier of the pane whose content changed.
        tab_id: The tab now bound to the pane, or None when it was emptied.
        url: Target URL of the bound application, or None.
    """

    pane_id: str
    tab_id: str | None
    url: str | None = None


@dataclass(slots=True)
class ActiveTabChanged(Event):
    tab_id: str | None


@dataclass(slots=True)
class ActivePaneChanged(Event):
    pane_id: str | None


@dataclass(slots=True)
class LayoutChanged(Event):
    """Emitted after each structural mutation has been snapshotted.

    Attributes:
        pane_ids: Pane identifiers in display order.
        tab_count: Size of the tab collection.
    """

    pane_ids: tuple[str, ...] = ()
    tab_count: int = 0


@dataclass(slots=True)
class WorkspaceRestored(Event):
    """Emitted once the coordinator has rebuilt its state from storage.

    Attributes:
        tab_count: The number of tabs that were restored.
        pane_count: The number of panes in the restored layout.
        dropped_tab_ids: Persisted tabs discarded because their application
            is no longer in the catalog.
    """

    tab_count: int
    pane_count: int
    dropped_tab_ids: tuple[str, ...] = field(default_factory=tuple)


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus.

    Handlers are keyed by exact event type. Bound methods are held through
    weak references so a discarded pane view drops out of the bus on its own;
    plain functions and lambdas are held strongly.

    Example::

        bus = EventBus()
        bus.subscribe(PaneRefreshRequested, view.on_refresh)
        bus.publish(PaneRefreshRequested(pane_id="pane-1"))

    Thread Safety:
        Not thread-safe. Publish and subscribe from the event-loop thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``.

        Subscribing the same handler twice results in two invocations per
        publish.
        """
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> int:
        """Deliver ``event`` synchronously to every live handler.

        A handler that raises is logged and skipped; the remaining handlers
        still run.

        Returns:
            The number of handlers that completed without raising.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            logger.debug("No handlers for event type %s", event_type.__name__)
            return 0

        logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))
        delivered = 0
        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                continue
            delivered += 1

        for handler_ref in dead:
            if handler_ref in handlers:
                handlers.remove(handler_ref)
        return delivered

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the handler count for ``event_type``, or across all types."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: Any, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref
        return self._ref()

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "PaneRefreshRequested",
    "PaneSearchRequested",
    "PaneNewSessionRequested",
    "PaneContentChanged",
    "ActiveTabChanged",
    "ActivePaneChanged",
    "LayoutChanged",
    "WorkspaceRestored",
]
