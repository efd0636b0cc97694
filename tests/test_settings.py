"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

from splitdeck.services.settings import DEFAULT_MAX_PANELS, Settings, SettingsStore, active_env_overrides


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    assert store.load() == Settings()
    assert not store.path.exists()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    original = Settings(
        max_panels=6,
        data_dir=str(tmp_path / "state"),
        catalog_path="~/apps.yaml",
        history_limit=50,
        debug_logging=True,
        metadata={"theme": "dark"},
    )

    SettingsStore(path).save(original)

    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1
    assert SettingsStore(path).load() == original


def test_unknown_fields_are_dropped_and_file_migrated(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"max_panels": 2, "legacy_option": True}), encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings.max_panels == 2
    rewritten = json.loads(path.read_text(encoding="utf-8"))
    assert rewritten["version"] == 1
    assert "legacy_option" not in rewritten


@pytest.mark.parametrize("body", ["{not json", "[1, 2, 3]"])
def test_unreadable_file_falls_back_to_defaults(tmp_path: Path, body: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(body, encoding="utf-8")

    assert SettingsStore(path).load() == Settings()


def test_cli_overrides_apply_before_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    monkeypatch.setenv("SPLITDECK_MAX_PANELS", "5")

    settings = store.load(overrides={"max_panels": 2, "history_limit": 10, "catalog_path": None})

    assert settings.max_panels == 5
    assert settings.history_limit == 10
    assert settings.catalog_path is None


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SPLITDECK_DATA_DIR", "/var/lib/splitdeck")
    monkeypatch.setenv("SPLITDECK_CATALOG", "/etc/splitdeck/apps.yaml")
    monkeypatch.setenv("SPLITDECK_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("SPLITDECK_HISTORY_LIMIT", "not-a-number")

    settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings.data_dir == "/var/lib/splitdeck"
    assert settings.catalog_path == "/etc/splitdeck/apps.yaml"
    assert settings.debug_logging is True
    assert settings.history_limit == Settings().history_limit
    assert "SPLITDECK_DATA_DIR" in active_env_overrides()


def test_metadata_overrides_merge(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(Settings(metadata={"a": 1}))

    settings = SettingsStore(path).load(overrides={"metadata": {"b": 2}})

    assert settings.metadata == {"a": 1, "b": 2}


def test_limits_are_clamped(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(replace(Settings(), max_panels=0, history_limit=-4))

    settings = SettingsStore(path).load()

    assert settings.max_panels == 1
    assert settings.history_limit == 1


def test_non_integer_limit_uses_default(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"version": 1, "max_panels": "many"}), encoding="utf-8")

    assert SettingsStore(path).load().max_panels == DEFAULT_MAX_PANELS
