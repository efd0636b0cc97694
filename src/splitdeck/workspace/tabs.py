"""Tab records and their persisted form."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from ..catalog.apps import Application

__all__ = ["Tab", "PersistedTab", "generate_tab_id", "generate_pane_id"]


def generate_tab_id(app: Application) -> str:
    return f"{app.id}-{uuid.uuid4().hex[:12]}"


def generate_pane_id() -> str:
    return f"pane-{uuid.uuid4().hex[:12]}"


@dataclass(slots=True)
class Tab:
    """A logical session bound to one application.

    A tab exists independently of the layout: a tab that no pane shows is
    still a valid member of the workspace.
    """

    id: str
    app: Application
    title: str = ""

    def __post_init__(self) -> None:
        if not self.title:
            self.title = self.app.name

    def rebind(self, app: Application) -> None:
        """Point this tab at ``app`` in place, keeping its id."""

        self.app = app
        self.title = app.name

    def to_persisted(self) -> PersistedTab:
        return PersistedTab(id=self.id, app_id=self.app.id, title=self.title)


@dataclass(frozen=True, slots=True)
class PersistedTab:
    """Minimal tab record written to storage; re-joined with the catalog on load."""

    id: str
    app_id: str
    title: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> PersistedTab | None:
        tab_id = payload.get("id")
        app_id = payload.get("applicationId")
        title = payload.get("title")
        if not isinstance(tab_id, str) or not tab_id or not isinstance(app_id, str):
            return None
        return cls(id=tab_id, app_id=app_id, title=title if isinstance(title, str) else "")

    def to_payload(self) -> dict[str, str]:
        return {"id": self.id, "applicationId": self.app_id, "title": self.title}
