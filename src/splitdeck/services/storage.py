"""Key/value persistence adapters for workspace snapshots."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Protocol

__all__ = ["KeyValueStore", "JsonFileStore", "MemoryStore", "default_data_dir"]

LOGGER = logging.getLogger(__name__)
_DATA_DIR = Path.home() / ".splitdeck" / "state"
_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def default_data_dir() -> Path:
    return _DATA_DIR


class KeyValueStore(Protocol):
    """Synchronous get/set of named JSON-serializable values."""

    def get(self, key: str, default: Any = None) -> Any:  # pragma: no cover - protocol
        ...

    def set(self, key: str, value: Any) -> None:  # pragma: no cover - protocol
        ...


class JsonFileStore:
    """Stores each key as ``<directory>/<key>.json`` with atomic replace writes."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self._directory = Path(directory).expanduser() if directory else default_data_dir()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            text = path.read_text(encoding="utf-8")
            return json.loads(text)
        except FileNotFoundError:
            return default
        except json.JSONDecodeError as exc:
            LOGGER.warning("Stored value %s is not valid JSON: %s", path, exc)
            return default

    def set(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        body = json.dumps(value, indent=2, ensure_ascii=False)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(path)
        LOGGER.debug("Stored %s (%d bytes)", path, len(body))


class MemoryStore:
    """In-process store; values are JSON round-tripped like the file store."""

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._values: Dict[str, str] = {}
        self.writes: list[str] = []
        for key, value in (initial or {}).items():
            self._values[key] = json.dumps(value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._values.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = json.dumps(value)
        self.writes.append(key)
