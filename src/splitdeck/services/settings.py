"""Settings dataclass and its JSON persistence helper."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = ["Settings", "SettingsStore", "DEFAULT_MAX_PANELS", "active_env_overrides"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".splitdeck"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_PREFIX = "SPLITDECK_"
_ENV_OVERRIDES: Mapping[str, str] = {
    "SPLITDECK_DATA_DIR": "data_dir",
    "SPLITDECK_CATALOG": "catalog_path",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "SPLITDECK_DEBUG_LOGGING": "debug_logging",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "SPLITDECK_MAX_PANELS": "max_panels",
    "SPLITDECK_HISTORY_LIMIT": "history_limit",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
DEFAULT_MAX_PANELS = 4


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    max_panels: int = DEFAULT_MAX_PANELS
    data_dir: str | None = None
    catalog_path: str | None = None
    history_limit: int = 1000
    debug_logging: bool = False
    log_dir: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, then apply CLI and environment overrides."""

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            if payload.get("version") != _SETTINGS_VERSION:
                LOGGER.debug(
                    "Settings version %s differs from %s; rewriting",
                    payload.get("version"),
                    _SETTINGS_VERSION,
                )
                try:
                    self.save(settings)
                except OSError as exc:
                    LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = _apply_overrides(settings, overrides, source="CLI")
        settings = _apply_env_overrides(settings)
        return _clamp(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with an atomic replace."""

        data = asdict(settings)
        data["version"] = _SETTINGS_VERSION
        body = json.dumps(data, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, Mapping):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return dict(data)


def active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith(_ENV_PREFIX))


def _apply_overrides(
    settings: Settings,
    overrides: Mapping[str, Any],
    *,
    source: str = "runtime",
) -> Settings:
    allowed = {item.name for item in fields(Settings)}
    filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
    metadata_override = filtered.get("metadata")
    if isinstance(metadata_override, Mapping):
        merged = dict(settings.metadata or {})
        merged.update(metadata_override)
        filtered["metadata"] = merged
    if filtered:
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        settings = replace(settings, **filtered)
    return settings


def _apply_env_overrides(settings: Settings) -> Settings:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value
    for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value.strip().lower() in _TRUE_VALUES
    for env_name, field_name in _INT_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = int(value, 10)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
    if overrides:
        settings = _apply_overrides(settings, overrides, source="environment")
    return settings


def _clamp(settings: Settings) -> Settings:
    max_panels = settings.max_panels if isinstance(settings.max_panels, int) else DEFAULT_MAX_PANELS
    history_limit = settings.history_limit if isinstance(settings.history_limit, int) else 1000
    return replace(settings, max_panels=max(1, max_panels), history_limit=max(1, history_limit))


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(Settings)}
    return {key: value for key, value in payload.items() if key in allowed}
