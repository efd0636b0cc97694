"""Application catalog: what each pane can host and how to drive its page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Literal, Mapping, Sequence

from jsonschema import Draft7Validator

__all__ = [
    "Application",
    "AppCatalog",
    "SearchConfig",
    "SubmitMethod",
    "MINIMAL_SEARCH_CONFIG",
    "MINIMAL_NEW_SESSION_SELECTORS",
    "parse_catalog_extension",
]


LOGGER = logging.getLogger(__name__)

SubmitMethod = Literal["click", "enter"]
_SUBMIT_METHODS: tuple[str, ...] = ("click", "enter")


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Selectors used to locate and submit the chat box of a hosted page."""

    input_selector: str
    submit_selector: str | None = None
    submit_method: SubmitMethod = "enter"

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> SearchConfig:
        method = payload.get("submit_method", "enter")
        if method not in _SUBMIT_METHODS:
            raise ValueError(f"Unsupported submit method: {method!r}")
        return cls(
            input_selector=str(payload["input_selector"]),
            submit_selector=payload.get("submit_selector"),
            submit_method=method,
        )


MINIMAL_SEARCH_CONFIG = SearchConfig(
    input_selector="textarea, input[type='text'], div[contenteditable='true']",
    submit_method="enter",
)
MINIMAL_NEW_SESSION_SELECTORS: tuple[str, ...] = (':scope-text("New Chat")',)


@dataclass(frozen=True, slots=True)
class Application:
    """An immutable catalog entry describing one hosted page."""

    id: str
    name: str
    url: str
    icon: str = ""
    bordered: bool = False
    no_search: bool = False
    search_config: SearchConfig | None = None
    new_session_selectors: tuple[str, ...] = ()


class AppCatalog:
    """Lookup table from application id to :class:`Application`.

    Besides the per-app entries the catalog carries a catalog-wide default
    search configuration and default new-session selectors, used for apps
    that do not declare their own.
    """

    def __init__(
        self,
        apps: Iterable[Application],
        *,
        default_search_config: SearchConfig | None = None,
        default_new_session_selectors: Sequence[str] = (),
    ) -> None:
        self._apps: dict[str, Application] = {}
        for app in apps:
            self._apps[app.id] = app
        self._default_search_config = default_search_config
        self._default_new_session_selectors = tuple(default_new_session_selectors)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._apps

    def __iter__(self) -> Iterator[Application]:
        return iter(self._apps.values())

    def __len__(self) -> int:
        return len(self._apps)

    def get(self, app_id: str) -> Application | None:
        return self._apps.get(app_id)

    def require(self, app_id: str) -> Application:
        app = self._apps.get(app_id)
        if app is None:
            raise KeyError(f"Unknown application: {app_id}")
        return app

    def apps(self) -> list[Application]:
        return list(self._apps.values())

    def ai_apps(self) -> list[Application]:
        return [app for app in self._apps.values() if not app.no_search]

    def websites(self) -> list[Application]:
        return [app for app in self._apps.values() if app.no_search]

    def find_by_url(self, url: str) -> Application | None:
        wanted = _normalize_url(url)
        for app in self._apps.values():
            if _normalize_url(app.url) == wanted:
                return app
        return None

    def search_config_for(self, app_id: str) -> SearchConfig:
        """Resolve the search selectors for ``app_id``.

        Falls back to the catalog default, then to a minimal configuration
        that matches any textarea, text input or contenteditable element.
        """

        app = self._lookup_case_insensitive(app_id)
        if app is not None and app.search_config is not None:
            return app.search_config
        if self._default_search_config is not None:
            LOGGER.debug("No search config for %s; using catalog default", app_id)
            return self._default_search_config
        LOGGER.warning("No search config for %s and no catalog default; using minimal config", app_id)
        return MINIMAL_SEARCH_CONFIG

    def new_session_selectors_for(self, app_id: str) -> tuple[str, ...]:
        app = self._lookup_case_insensitive(app_id)
        if app is not None and app.new_session_selectors:
            return app.new_session_selectors
        if self._default_new_session_selectors:
            return self._default_new_session_selectors
        return MINIMAL_NEW_SESSION_SELECTORS

    def merged(self, extra: Iterable[Application]) -> AppCatalog:
        """Return a copy with ``extra`` entries added or replacing same-id entries."""

        apps = dict(self._apps)
        for app in extra:
            apps[app.id] = app
        return AppCatalog(
            apps.values(),
            default_search_config=self._default_search_config,
            default_new_session_selectors=self._default_new_session_selectors,
        )

    def _lookup_case_insensitive(self, app_id: str) -> Application | None:
        app = self._apps.get(app_id)
        if app is not None:
            return app
        lowered = app_id.lower()
        for candidate_id, candidate in self._apps.items():
            if candidate_id.lower() == lowered:
                return candidate
        return None


def _normalize_url(url: str) -> str:
    return url.strip().rstrip("/").lower()


# ---------------------------------------------------------------------------
# User catalog extensions
# ---------------------------------------------------------------------------

_EXTENSION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "apps": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "name", "url"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "name": {"type": "string", "minLength": 1},
                    "url": {"type": "string", "pattern": "^https?://"},
                    "icon": {"type": "string"},
                    "bordered": {"type": "boolean"},
                    "no_search": {"type": "boolean"},
                    "search": {
                        "type": "object",
                        "required": ["input_selector"],
                        "properties": {
                            "input_selector": {"type": "string", "minLength": 1},
                            "submit_selector": {"type": "string"},
                            "submit_method": {"enum": list(_SUBMIT_METHODS)},
                        },
                        "additionalProperties": False,
                    },
                    "new_session_selectors": {
                        "type": "array",
                        "items": {"type": "string", "minLength": 1},
                    },
                },
                "additionalProperties": False,
            },
        }
    },
    "required": ["apps"],
}
_EXTENSION_VALIDATOR = Draft7Validator(_EXTENSION_SCHEMA)


def parse_catalog_extension(payload: Any) -> list[Application]:
    """Validate a decoded extension document and build its applications.

    Raises:
        ValueError: If ``payload`` does not match the extension schema.
    """

    errors = sorted(_EXTENSION_VALIDATOR.iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.path) or "<root>"
        raise ValueError(f"Invalid catalog extension at {location}: {first.message}")

    apps: list[Application] = []
    for entry in payload["apps"]:
        search = entry.get("search")
        apps.append(
            Application(
                id=entry["id"],
                name=entry["name"],
                url=entry["url"],
                icon=entry.get("icon", ""),
                bordered=bool(entry.get("bordered", False)),
                no_search=bool(entry.get("no_search", False)),
                search_config=SearchConfig.from_mapping(search) if search else None,
                new_session_selectors=tuple(entry.get("new_session_selectors", ())),
            )
        )
    return apps

