"""Command-line front-end for inspecting and driving a SplitDeck workspace."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, TextIO, get_args, get_origin, get_type_hints

from .catalog import AppCatalog, Application, load_catalog
from .services.history import SearchHistory
from .services.settings import Settings, SettingsStore, active_env_overrides
from .services.storage import JsonFileStore, KeyValueStore
from .utils import logging as logging_utils
from .workspace import OpenResult, WorkspaceCoordinator

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Runtime:
    """Everything a subcommand needs, built once per invocation."""

    settings: Settings
    store: KeyValueStore
    catalog: AppCatalog
    coordinator: WorkspaceCoordinator
    history: SearchHistory


class CommandError(Exception):
    """A user-facing failure; printed to stderr with exit status 1."""


def configure_logging(
    debug: bool = False,
    *,
    log_dir: str | None = None,
    data_dir: str | None = None,
    force: bool = False,
) -> None:
    level = logging_utils.level_for(debug)
    logging_utils.setup_logging(level, log_dir=log_dir, data_dir=data_dir, console=debug, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Path | None = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def build_runtime(settings: Settings, *, store: KeyValueStore | None = None) -> Runtime:
    state_store = store or JsonFileStore(settings.data_dir)
    catalog = load_catalog(settings.catalog_path)
    coordinator = WorkspaceCoordinator(catalog, state_store)
    history = SearchHistory(state_store, limit=settings.history_limit)
    return Runtime(
        settings=settings,
        store=state_store,
        catalog=catalog,
        coordinator=coordinator,
        history=history,
    )


def main(argv: Sequence[str] | None = None, *, stream: TextIO | None = None) -> int:
    """Entry point invoked by the ``splitdeck`` console script."""

    out = stream or sys.stdout
    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or _env_flag("SPLITDECK_DEBUG")
    settings_path = args.settings_path or os.environ.get("SPLITDECK_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    configure_logging(
        debug or settings.debug_logging, log_dir=settings.log_dir, data_dir=settings.data_dir
    )

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides, stream=out)
        return 0
    if args.command is None:
        parser.print_help(out)
        return 0

    runtime = build_runtime(settings)
    try:
        args.handler(runtime, args, out)
    except CommandError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


# ----------------------------------------------------------------------
# Subcommands
# ----------------------------------------------------------------------
def _cmd_apps(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    for app in runtime.catalog:
        flags = []
        if runtime.coordinator.is_tab_open(app.id):
            flags.append("open")
        if app.no_search:
            flags.append("website")
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        out.write(f"{app.id:<18} {app.name:<18} {app.url}{suffix}\n")


def _cmd_show(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    coordinator = runtime.coordinator
    if args.json:
        payload = dict(coordinator.snapshot())
        payload["activePaneId"] = coordinator.active_pane_id
        payload["activeTabId"] = coordinator.active_tab_id
        json.dump(payload, out, indent=2, ensure_ascii=False)
        out.write("\n")
        return
    for index, pane in enumerate(coordinator.layout.children, start=1):
        tab = coordinator.get_tab(pane.tab_id) if pane.tab_id else None
        marker = "*" if pane.id == coordinator.active_pane_id else " "
        label = f"{tab.title} ({tab.id})" if tab else "<empty>"
        size = f" {pane.size:.1f}%" if pane.size is not None else ""
        out.write(f"{marker}{index}. {pane.id}: {label}{size}\n")
    orphans = [tab for tab in coordinator.tabs if coordinator.find_pane_by_tab_id(tab.id) is None]
    for tab in orphans:
        out.write(f"   (hidden) {tab.title} ({tab.id})\n")


def _cmd_open(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    app = _require_app(runtime, args.app_id)
    if args.website:
        result = runtime.coordinator.open_website_with_split(app)
    else:
        result = runtime.coordinator.open_app_with_split(app, runtime.settings.max_panels)
    if result is OpenResult.LIMIT:
        raise CommandError(
            f"cannot open {app.name}: all {runtime.settings.max_panels} panes are in use; close one first"
        )
    out.write(f"opened {app.name}\n")


def _cmd_switch(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    if runtime.coordinator.get_tab(args.tab_id) is None:
        raise CommandError(f"unknown tab: {args.tab_id}")
    runtime.coordinator.switch_tab(args.tab_id)


def _cmd_remove(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    if runtime.coordinator.get_tab(args.tab_id) is None:
        raise CommandError(f"unknown tab: {args.tab_id}")
    runtime.coordinator.remove_tab(args.tab_id)


def _cmd_add_panel(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    out.write(f"{runtime.coordinator.add_panel()}\n")


def _cmd_close(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    if not runtime.coordinator.close_pane(args.pane_id):
        raise CommandError(f"unknown pane: {args.pane_id}")


def _cmd_move(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    coordinator = runtime.coordinator
    for pane_id in (args.source, args.target):
        if coordinator.find_pane(pane_id) is None:
            raise CommandError(f"unknown pane: {pane_id}")
    coordinator.move_pane(args.source, args.target)


def _cmd_resize(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    runtime.coordinator.set_pane_sizes(args.sizes)
    runtime.coordinator.persist_state()


def _cmd_search(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    text = " ".join(args.text).strip()
    if not text:
        raise CommandError("search text is empty")
    count = asyncio.run(runtime.coordinator.search_all_apps(text))
    runtime.history.add(text)
    out.write(f"search sent to {count} pane(s)\n")


def _cmd_new_session(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    count = asyncio.run(runtime.coordinator.create_new_session_for_all())
    out.write(f"new session requested in {count} pane(s)\n")


def _cmd_history(runtime: Runtime, args: argparse.Namespace, out: TextIO) -> None:
    history = runtime.history
    if args.clear:
        history.clear()
        return
    if args.delete:
        if not history.delete(args.delete):
            raise CommandError(f"unknown history entry: {args.delete}")
        return
    for record in history.records()[: args.limit]:
        out.write(f"{record.id}  {record.text}\n")


def _require_app(runtime: Runtime, app_id: str) -> Application:
    app = runtime.catalog.get(app_id) or runtime.catalog.find_by_url(app_id)
    if app is None:
        raise CommandError(f"unknown application: {app_id} (see `splitdeck apps`)")
    return app


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="splitdeck",
        description="Inspect and drive a multi-pane SplitDeck workspace.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on stderr.")
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.splitdeck/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    sub = parser.add_subparsers(dest="command")

    cmd = sub.add_parser("apps", help="List catalog applications.")
    cmd.set_defaults(handler=_cmd_apps)

    cmd = sub.add_parser("show", help="Show panes and their tabs.")
    cmd.add_argument("--json", action="store_true", help="Print the raw snapshot.")
    cmd.set_defaults(handler=_cmd_show)

    cmd = sub.add_parser("open", help="Open an AI application in its own pane.")
    cmd.add_argument("app_id", help="Application id or URL.")
    cmd.set_defaults(handler=_cmd_open, website=False)

    cmd = sub.add_parser("open-site", help="Open an ordinary website, reusing a pane.")
    cmd.add_argument("app_id", help="Application id or URL.")
    cmd.set_defaults(handler=_cmd_open, website=True)

    cmd = sub.add_parser("switch", help="Activate a tab, placing it in a pane if hidden.")
    cmd.add_argument("tab_id")
    cmd.set_defaults(handler=_cmd_switch)

    cmd = sub.add_parser("remove", help="Clear a tab from the layout and close its pane.")
    cmd.add_argument("tab_id")
    cmd.set_defaults(handler=_cmd_remove)

    cmd = sub.add_parser("add-panel", help="Append an empty pane.")
    cmd.set_defaults(handler=_cmd_add_panel)

    cmd = sub.add_parser("close", help="Close a pane and its tab.")
    cmd.add_argument("pane_id")
    cmd.set_defaults(handler=_cmd_close)

    cmd = sub.add_parser("move", help="Move a pane to another pane's position.")
    cmd.add_argument("source")
    cmd.add_argument("target")
    cmd.set_defaults(handler=_cmd_move)

    cmd = sub.add_parser("resize", help="Set pane widths in percent, left to right.")
    cmd.add_argument("sizes", nargs="+", type=float)
    cmd.set_defaults(handler=_cmd_resize)

    cmd = sub.add_parser("search", help="Submit text to every open AI application.")
    cmd.add_argument("text", nargs="+")
    cmd.set_defaults(handler=_cmd_search)

    cmd = sub.add_parser("new-session", help="Start a new conversation in every AI application.")
    cmd.set_defaults(handler=_cmd_new_session)

    cmd = sub.add_parser("history", help="List or edit the search history.")
    cmd.add_argument("--limit", type=int, default=20)
    cmd.add_argument("--delete", metavar="ID")
    cmd.add_argument("--clear", action="store_true")
    cmd.set_defaults(handler=_cmd_history)
    return parser


# ----------------------------------------------------------------------
# Settings helpers
# ----------------------------------------------------------------------
def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _coerce_value(type_hints.get(key, fields[key].type), raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    if raw_value.lower() in {"none", "null"} and target is not bool:
        return None
    if target is bool:
        return _parse_bool(raw_value)
    if target is int:
        return int(raw_value, 10)
    if target is float:
        return float(raw_value)
    if target is dict:
        try:
            payload = json.loads(raw_value or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Dict overrides must be valid JSON objects") from exc
        if not isinstance(payload, dict):
            raise ValueError("Dict overrides must be valid JSON objects")
        return payload
    return raw_value


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin in {list, dict}:
        return origin
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0]


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": active_env_overrides(),
    }
    json.dump({"settings": asdict(settings), "meta": metadata}, destination, indent=2)
    destination.write("\n")


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
