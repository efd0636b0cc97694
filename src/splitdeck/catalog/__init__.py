"""Application catalog: built-in apps, selector tables and user extensions."""

from .apps import AppCatalog, Application, SearchConfig
from .defaults import build_default_catalog
from .loader import load_catalog

__all__ = ["AppCatalog", "Application", "SearchConfig", "build_default_catalog", "load_catalog"]
