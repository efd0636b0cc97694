"""Tests for :mod:`splitdeck.services.history`."""

from __future__ import annotations

import itertools

import pytest

from splitdeck.services import history as history_module
from splitdeck.services.history import HISTORY_KEY, HistoryRecord, SearchHistory
from splitdeck.services.storage import MemoryStore


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> itertools.count:
    ticks = itertools.count(1_700_000_000)
    monkeypatch.setattr(history_module.time, "time", lambda: next(ticks))
    return ticks


def test_add_prepends_newest_first(clock) -> None:
    history = SearchHistory(MemoryStore())

    first = history.add("first")
    second = history.add("  second  ")

    assert [record.text for record in history.records()] == ["second", "first"]
    assert second.created_at > first.created_at
    assert second.id.startswith(f"{second.created_at}-")


def test_blank_text_is_ignored() -> None:
    store = MemoryStore()
    history = SearchHistory(store)

    assert history.add("   ") is None
    assert store.writes == []


def test_limit_drops_oldest(clock) -> None:
    history = SearchHistory(MemoryStore(), limit=3)
    for text in ("a", "b", "c", "d", "e"):
        history.add(text)

    assert [record.text for record in history.records()] == ["e", "d", "c"]


def test_delete_and_clear(clock) -> None:
    store = MemoryStore()
    history = SearchHistory(store)
    keep = history.add("keep")
    drop = history.add("drop")

    assert history.delete(drop.id)
    assert not history.delete("missing")
    assert history.records() == [keep]

    history.clear()
    assert history.records() == []
    assert store.get(HISTORY_KEY) == []


def test_persisted_payload_shape(clock) -> None:
    store = MemoryStore()
    record = SearchHistory(store).add("hello")

    assert store.get(HISTORY_KEY) == [{"id": record.id, "text": "hello", "createdAt": record.created_at}]
    assert HistoryRecord.from_payload(store.get(HISTORY_KEY)[0]) == record


def test_malformed_payload_is_ignored() -> None:
    history = SearchHistory(MemoryStore({HISTORY_KEY: {"not": "a list"}}))
    assert history.records() == []

    history = SearchHistory(MemoryStore({HISTORY_KEY: ["junk", {"id": "1", "text": "ok", "createdAt": 5}]}))
    assert [record.text for record in history.records()] == ["ok"]


def test_limit_is_clamped() -> None:
    assert SearchHistory(MemoryStore(), limit=0).limit == 1
