"""Layout tree describing how panes are arranged.

The tree is a genuine recursive structure (``split`` panes own ordered
children that may themselves be splits), but the coordinator only ever
builds and mutates the direct children of a single ``split`` root.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from jsonschema import Draft7Validator

__all__ = [
    "Pane",
    "PaneKind",
    "Direction",
    "ROOT_PANE_ID",
    "PLACEHOLDER_PANE_ID",
    "FIRST_PANE_ID",
    "LayoutError",
    "validate_layout_payload",
]

PaneKind = Literal["single", "split"]
Direction = Literal["horizontal", "vertical"]

ROOT_PANE_ID = "root"
PLACEHOLDER_PANE_ID = "pane-empty"
FIRST_PANE_ID = "pane-1"

_LAYOUT_SCHEMA: dict[str, Any] = {
    "$ref": "#/definitions/pane",
    "definitions": {
        "pane": {
            "type": "object",
            "required": ["id", "type"],
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "type": {"enum": ["single", "split"]},
                "direction": {"enum": ["horizontal", "vertical"]},
                "tabId": {"type": ["string", "null"]},
                "size": {"type": ["number", "null"]},
                "children": {"type": "array", "items": {"$ref": "#/definitions/pane"}},
            },
        }
    },
}
_LAYOUT_VALIDATOR = Draft7Validator(_LAYOUT_SCHEMA)


class LayoutError(ValueError):
    """Raised when a persisted layout payload cannot be decoded."""


@dataclass(slots=True)
class Pane:
    """A node of the layout tree.

    ``single`` panes host at most one tab (``tab_id``) and may carry a
    display ``size`` percentage. ``split`` panes own ordered ``children``
    laid out along ``direction``.
    """

    id: str
    kind: PaneKind = "single"
    tab_id: str | None = None
    size: float | None = None
    direction: Direction = "horizontal"
    children: list[Pane] = field(default_factory=list)

    @classmethod
    def single(cls, pane_id: str, tab_id: str | None = None) -> Pane:
        return cls(id=pane_id, kind="single", tab_id=tab_id)

    @classmethod
    def split(cls, pane_id: str = ROOT_PANE_ID, children: list[Pane] | None = None) -> Pane:
        return cls(id=pane_id, kind="split", children=list(children or []))

    @property
    def is_single(self) -> bool:
        return self.kind == "single"

    @property
    def is_empty(self) -> bool:
        return self.is_single and not self.tab_id

    def singles(self) -> list[Pane]:
        """Direct ``single`` children, in display order."""

        return [child for child in self.children if child.is_single]

    def child_index(self, pane_id: str) -> int:
        for index, child in enumerate(self.children):
            if child.id == pane_id:
                return index
        return -1

    def to_payload(self) -> dict[str, Any]:
        if self.is_single:
            payload: dict[str, Any] = {"id": self.id, "type": "single", "tabId": self.tab_id}
            if self.size is not None:
                payload["size"] = self.size
            return payload
        return {
            "id": self.id,
            "type": "split",
            "direction": self.direction,
            "children": [child.to_payload() for child in self.children],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Pane:
        """Decode a persisted pane (recursively).

        Raises:
            LayoutError: If the payload does not describe a valid pane tree.
        """

        errors = validate_layout_payload(payload)
        if errors:
            raise LayoutError(errors[0])
        return _decode(copy.deepcopy(dict(payload)))


def validate_layout_payload(payload: Any) -> list[str]:
    """Return human-readable schema violations for ``payload`` (empty if valid)."""

    messages: list[str] = []
    for error in sorted(_LAYOUT_VALIDATOR.iter_errors(payload), key=lambda err: list(err.path)):
        location = "/".join(str(part) for part in error.path) or "<root>"
        messages.append(f"{location}: {error.message}")
    return messages


def _decode(payload: Mapping[str, Any]) -> Pane:
    kind = payload["type"]
    if kind == "single":
        size = payload.get("size")
        return Pane(
            id=payload["id"],
            kind="single",
            tab_id=payload.get("tabId") or None,
            size=float(size) if size is not None else None,
        )
    return Pane(
        id=payload["id"],
        kind="split",
        direction=payload.get("direction", "horizontal"),
        children=[_decode(child) for child in payload.get("children") or []],
    )
