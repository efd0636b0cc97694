"""Build the effective application catalog from built-ins and a user file."""

from __future__ import annotations

import logging
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .apps import AppCatalog, parse_catalog_extension
from .defaults import build_default_catalog

__all__ = ["load_catalog"]

LOGGER = logging.getLogger(__name__)


def load_catalog(extension_path: Path | str | None = None) -> AppCatalog:
    """Return the built-in catalog, extended by a YAML file when given.

    A missing or invalid extension file is logged and ignored so a bad
    user file never prevents the workspace from starting.
    """

    catalog = build_default_catalog()
    if not extension_path:
        return catalog

    path = Path(extension_path).expanduser()
    if not path.exists():
        LOGGER.warning("Catalog extension %s does not exist", path)
        return catalog

    parser = YAML(typ="safe")
    try:
        document = parser.load(path.read_text(encoding="utf-8"))
    except YAMLError as exc:
        LOGGER.warning("Catalog extension %s is not valid YAML: %s", path, exc)
        return catalog

    try:
        extra = parse_catalog_extension(document)
    except ValueError as exc:
        LOGGER.warning("Ignoring catalog extension %s: %s", path, exc)
        return catalog

    LOGGER.info("Loaded %d application(s) from %s", len(extra), path)
    return catalog.merged(extra)
