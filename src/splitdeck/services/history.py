"""Search history kept as a bounded, newest-first list."""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import asdict, dataclass
from typing import Any, Mapping

from .storage import KeyValueStore

__all__ = ["HistoryRecord", "SearchHistory", "HISTORY_KEY", "MAX_HISTORY_COUNT"]

LOGGER = logging.getLogger(__name__)
HISTORY_KEY = "search_history"
MAX_HISTORY_COUNT = 1000


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    id: str
    text: str
    created_at: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> HistoryRecord | None:
        record_id = payload.get("id")
        text = payload.get("text")
        created_at = payload.get("createdAt")
        if not isinstance(record_id, str) or not isinstance(text, str):
            return None
        if not isinstance(created_at, int):
            created_at = 0
        return cls(id=record_id, text=text, created_at=created_at)

    def to_payload(self) -> dict[str, Any]:
        data = asdict(self)
        data["createdAt"] = data.pop("created_at")
        return data


class SearchHistory:
    """FIFO log of submitted search texts.

    New entries go to the front; once ``limit`` is exceeded the oldest
    entries fall off the end. Every mutation rewrites the whole list.
    """

    def __init__(self, store: KeyValueStore, *, limit: int = MAX_HISTORY_COUNT) -> None:
        self._store = store
        self._limit = max(1, limit)

    @property
    def limit(self) -> int:
        return self._limit

    def records(self) -> list[HistoryRecord]:
        """Return all records ordered newest first."""

        records = self._load()
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def add(self, text: str) -> HistoryRecord | None:
        """Record ``text``; blank input is ignored and returns None."""

        trimmed = (text or "").strip()
        if not trimmed:
            return None
        now = int(time.time() * 1000)
        record = HistoryRecord(id=f"{now}-{secrets.token_hex(5)}", text=trimmed, created_at=now)
        records = [record, *self._load()]
        if len(records) > self._limit:
            LOGGER.debug("Trimming search history from %d to %d entries", len(records), self._limit)
            del records[self._limit :]
        self._save(records)
        return record

    def delete(self, record_id: str) -> bool:
        records = self._load()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        self._save([])

    def _load(self) -> list[HistoryRecord]:
        payload = self._store.get(HISTORY_KEY, [])
        if not isinstance(payload, list):
            LOGGER.warning("Ignoring malformed search history payload (%s)", type(payload).__name__)
            return []
        records: list[HistoryRecord] = []
        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            record = HistoryRecord.from_payload(entry)
            if record is not None:
                records.append(record)
        return records

    def _save(self, records: list[HistoryRecord]) -> None:
        self._store.set(HISTORY_KEY, [record.to_payload() for record in records])
