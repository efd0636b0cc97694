"""Tests for the coordinator's broadcast commands."""

from __future__ import annotations

import pytest

from splitdeck.catalog import AppCatalog
from splitdeck.catalog.defaults import DEFAULT_NEW_SESSION_SELECTORS
from splitdeck.services.storage import MemoryStore
from splitdeck.ui.events import EventBus, PaneNewSessionRequested, PaneSearchRequested
from splitdeck.ui.pane_view import PaneView, RecordingPageHost
from tests.helpers import CommandRecorder


def _workspace(*bindings: tuple[str, str, str]) -> dict:
    return {
        "tabs": [{"id": tab_id, "applicationId": app_id, "title": app_id} for _, tab_id, app_id in bindings],
        "split_layout": {
            "id": "root",
            "type": "split",
            "direction": "horizontal",
            "children": [{"id": pane_id, "type": "single", "tabId": tab_id} for pane_id, tab_id, _ in bindings],
        },
    }


@pytest.fixture
def mixed_store() -> MemoryStore:
    return MemoryStore(
        _workspace(
            ("pane-1", "deepseek-a", "deepseek"),
            ("pane-2", "github-b", "github"),
        )
    )


@pytest.mark.asyncio
async def test_search_skips_no_search_panes(make_coordinator, mixed_store, bus: EventBus, catalog) -> None:
    coordinator = make_coordinator(mixed_store)
    commands = CommandRecorder(bus)

    count = await coordinator.search_all_apps("hello")

    assert count == 1
    searches = commands.of_type(PaneSearchRequested)
    assert len(searches) == 1
    assert searches[0].pane_id == "pane-1"
    assert searches[0].text == "hello"
    assert searches[0].config == catalog.search_config_for("deepseek")


@pytest.mark.asyncio
async def test_search_addresses_panes_in_display_order(make_coordinator, bus: EventBus) -> None:
    coordinator = make_coordinator()
    commands = CommandRecorder(bus)
    coordinator.move_pane("pane-3", "pane-1")

    assert await coordinator.search_all_apps("hi") == 3

    assert commands.pane_ids(PaneSearchRequested) == ["pane-3", "pane-1", "pane-2"]


@pytest.mark.asyncio
async def test_search_uses_per_app_config(make_coordinator, bus: EventBus, catalog: AppCatalog) -> None:
    coordinator = make_coordinator(MemoryStore(_workspace(("pane-1", "stepfun-a", "stepfun"))))
    commands = CommandRecorder(bus)

    await coordinator.search_all_apps("hi")

    config = commands.of_type(PaneSearchRequested)[0].config
    assert config.submit_method == "click"
    assert config.submit_selector


@pytest.mark.asyncio
async def test_search_with_no_targets_sends_nothing(make_coordinator, bus: EventBus) -> None:
    coordinator = make_coordinator(MemoryStore(_workspace(("pane-1", "github-a", "github"))))
    commands = CommandRecorder(bus)

    assert await coordinator.search_all_apps("hello") == 0
    assert commands.events == []


@pytest.mark.asyncio
async def test_new_session_uses_app_selectors(make_coordinator, bus: EventBus, catalog: AppCatalog) -> None:
    coordinator = make_coordinator(
        MemoryStore(
            _workspace(
                ("pane-1", "stepfun-a", "stepfun"),
                ("pane-2", "grok-b", "grok"),
                ("pane-3", "github-c", "github"),
            )
        )
    )
    commands = CommandRecorder(bus)

    assert await coordinator.create_new_session_for_all() == 2

    requests = commands.of_type(PaneNewSessionRequested)
    assert [request.pane_id for request in requests] == ["pane-1", "pane-2"]
    assert requests[0].selectors == (':navigate-to("/chats/new")',)
    assert requests[1].selectors == DEFAULT_NEW_SESSION_SELECTORS


@pytest.mark.asyncio
async def test_failing_dispatch_does_not_block_others(make_coordinator, bus: EventBus) -> None:
    coordinator = make_coordinator()
    delivered: list[str] = []

    async def flaky(pane_id: str, text: str, config) -> None:
        if pane_id == "pane-2":
            raise RuntimeError("pane not responding")
        delivered.append(pane_id)

    coordinator.send_search_to_pane = flaky  # type: ignore[method-assign]

    assert await coordinator.search_all_apps("hello") == 3
    assert delivered == ["pane-1", "pane-3"]


@pytest.mark.asyncio
async def test_failing_view_does_not_block_others(make_coordinator, bus: EventBus) -> None:
    coordinator = make_coordinator()
    received: list[str] = []

    def broken(event: PaneSearchRequested) -> None:
        raise RuntimeError("view crashed")

    bus.subscribe(PaneSearchRequested, broken)
    bus.subscribe(PaneSearchRequested, lambda event: received.append(event.pane_id))

    assert await coordinator.search_all_apps("hello") == 3
    assert received == ["pane-1", "pane-2", "pane-3"]


@pytest.mark.asyncio
async def test_views_only_see_their_own_commands(make_coordinator, bus: EventBus) -> None:
    coordinator = make_coordinator()
    hosts = {pane.id: RecordingPageHost() for pane in coordinator.layout.children}
    views = [PaneView(pane_id, host, bus) for pane_id, host in hosts.items()]

    await coordinator.search_all_apps("hello")
    await coordinator.send_search_to_pane("ghost", "stray", coordinator.get_app_search_config("deepseek"))

    for view in views:
        assert [event.pane_id for event in view.received] == [view.pane_id]
        assert [call.action for call in hosts[view.pane_id].calls] == ["run_script"]
