"""Logging setup for the SplitDeck workspace tools.

Records from ``splitdeck.*`` loggers are written with the package prefix
stripped (``workspace.coordinator`` rather than
``splitdeck.workspace.coordinator``) so a pane's activity lines up in a narrow
column. Everything else keeps its full logger name.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = [
    "ComponentFormatter",
    "component_name",
    "setup_logging",
    "get_log_path",
    "level_for",
    "resolve_log_dir",
]

PACKAGE_LOGGER = "splitdeck"
LOG_DIR_ENV = "SPLITDECK_LOG_DIR"
LOG_FILENAME = "splitdeck.log"
_HOME_LOG_DIR = Path.home() / ".splitdeck" / "logs"
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio",)
_LOG_PATH: Path | None = None


class ComponentFormatter(logging.Formatter):
    """Pipe-separated formatter keyed by SplitDeck component."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(component)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        record.component = component_name(record.name)
        return super().format(record)


def component_name(logger_name: str) -> str:
    prefix = PACKAGE_LOGGER + "."
    if logger_name.startswith(prefix):
        return logger_name[len(prefix) :]
    return logger_name


def level_for(debug: bool) -> int:
    return logging.DEBUG if debug else logging.INFO


def resolve_log_dir(log_dir: Path | str | None = None, *, data_dir: Path | str | None = None) -> Path:
    """Pick the log directory.

    An explicit ``log_dir`` wins, then ``SPLITDECK_LOG_DIR``, then a ``logs``
    folder inside the workspace data directory, then ``~/.splitdeck/logs``.
    """

    if log_dir:
        return Path(log_dir).expanduser()
    override = os.environ.get(LOG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    if data_dir:
        return Path(data_dir).expanduser() / "logs"
    return _HOME_LOG_DIR


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    data_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 512_000,
    backup_count: int = 2,
    force: bool = False,
) -> Path:
    """Route the root logger to ``splitdeck.log`` and, optionally, stderr.

    Subsequent calls are no-ops unless ``force`` is set, which lets the CLI
    bump verbosity once settings have been loaded.
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    directory = resolve_log_dir(log_dir, data_dir=data_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILENAME

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = ComponentFormatter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the active log file, if logging has been configured."""

    return _LOG_PATH
