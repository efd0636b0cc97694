"""JavaScript snippets injected into hosted pages by pane views."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Literal, Sequence

from ..catalog.apps import SearchConfig

__all__ = [
    "SelectorSpec",
    "parse_selector",
    "build_search_script",
    "build_new_session_script",
]

SelectorKind = Literal["css", "text", "navigate"]

_PSEUDO_RE = re.compile(r'^:(?P<name>scope-text|navigate-to)\(\s*"(?P<arg>(?:[^"\\]|\\.)*)"\s*\)$')


@dataclass(frozen=True, slots=True)
class SelectorSpec:
    kind: SelectorKind
    value: str

    def to_json(self) -> dict[str, str]:
        return {"kind": self.kind, "value": self.value}


def parse_selector(selector: str) -> SelectorSpec:
    """Classify a new-session selector.

    ``:scope-text("label")`` matches a clickable element by visible text and
    ``:navigate-to("/path")`` navigates instead of clicking. Anything else
    is treated as a CSS selector.
    """

    raw = selector.strip()
    match = _PSEUDO_RE.match(raw)
    if match is None:
        return SelectorSpec(kind="css", value=raw)
    argument = match.group("arg").replace('\\"', '"')
    if match.group("name") == "scope-text":
        return SelectorSpec(kind="text", value=argument)
    return SelectorSpec(kind="navigate", value=argument)


_SEARCH_TEMPLATE = """(() => {
  const text = %(text)s;
  const inputSelector = %(input)s;
  const submitSelector = %(submit)s;
  const submitMethod = %(method)s;
  const visible = (el) => !!(el && (el.offsetWidth || el.offsetHeight || el.getClientRects().length));
  const candidates = Array.from(document.querySelectorAll(inputSelector));
  const input = candidates.find(visible) || candidates[0];
  if (!input) { return false; }
  input.focus();
  if (input.isContentEditable) {
    document.execCommand('selectAll', false, null);
    document.execCommand('insertText', false, text);
  } else {
    const proto = input.tagName === 'TEXTAREA' ? HTMLTextAreaElement.prototype : HTMLInputElement.prototype;
    const setter = Object.getOwnPropertyDescriptor(proto, 'value').set;
    setter.call(input, text);
  }
  input.dispatchEvent(new Event('input', { bubbles: true }));
  input.dispatchEvent(new Event('change', { bubbles: true }));
  setTimeout(() => {
    if (submitMethod === 'click' && submitSelector) {
      const button = document.querySelector(submitSelector);
      if (button) { button.click(); return; }
    }
    for (const type of ['keydown', 'keypress', 'keyup']) {
      input.dispatchEvent(new KeyboardEvent(type, {
        key: 'Enter', code: 'Enter', keyCode: 13, which: 13, bubbles: true, cancelable: true,
      }));
    }
  }, 300);
  return true;
})();"""

_NEW_SESSION_TEMPLATE = """(() => {
  const specs = %(specs)s;
  const clickable = (el) => el.closest('button, a, [role="button"], [onclick]') || el;
  for (const spec of specs) {
    try {
      if (spec.kind === 'navigate') {
        window.location.href = new URL(spec.value, window.location.origin).toString();
        return true;
      }
      if (spec.kind === 'text') {
        const nodes = Array.from(document.querySelectorAll('button, a, div, span, [role="button"]'));
        const hit = nodes.find((el) => el.children.length === 0 && (el.textContent || '').includes(spec.value));
        if (hit) { clickable(hit).click(); return true; }
        continue;
      }
      const el = document.querySelector(spec.value);
      if (el) { clickable(el).click(); return true; }
    } catch (err) {
      continue;
    }
  }
  return false;
})();"""


def build_search_script(text: str, config: SearchConfig) -> str:
    """Return a script that fills the chat box with ``text`` and submits it."""

    return _SEARCH_TEMPLATE % {
        "text": json.dumps(text, ensure_ascii=False),
        "input": json.dumps(config.input_selector, ensure_ascii=False),
        "submit": json.dumps(config.submit_selector, ensure_ascii=False),
        "method": json.dumps(config.submit_method),
    }


def build_new_session_script(selectors: Sequence[str]) -> str:
    """Return a script that tries ``selectors`` in order until one works."""

    specs = [parse_selector(selector).to_json() for selector in selectors if selector.strip()]
    return _NEW_SESSION_TEMPLATE % {"specs": json.dumps(specs, ensure_ascii=False)}
