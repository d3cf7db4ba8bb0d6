"""Accessibility-style text snapshots of a tab with durable ref ids."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from .base import BrowserSession
from .refs import REF_ATTRIBUTE, REF_PREFIX
from .scripts import COLLECT_TREE_SCRIPT

LOGGER = logging.getLogger(__name__)

DEFAULT_DEPTH = 15
MAX_NAME_LENGTH = 50
EMPTY_SNAPSHOT = "(no elements found)"

TAG_ROLES = {
    "A": "link",
    "BUTTON": "button",
    "INPUT": "textbox",
    "SELECT": "combobox",
    "TEXTAREA": "textbox",
    "IMG": "image",
    "H1": "heading",
    "H2": "heading",
    "H3": "heading",
    "NAV": "navigation",
    "MAIN": "main",
    "FORM": "form",
}


def resolve_role(node: dict[str, Any]) -> str:
    """Explicit ``role`` attribute first, then the tag table, else ``generic``."""

    role = node.get("role")
    if role:
        return role
    return TAG_ROLES.get(str(node.get("tag", "")).upper(), "generic")


def resolve_name(node: dict[str, Any]) -> str:
    """Return the accessible name: aria-label, alt, title, then text content."""

    for key in ("ariaLabel", "alt", "title", "text"):
        value = node.get(key)
        if value:
            name = " ".join(str(value).split())
            if name:
                return name[:MAX_NAME_LENGTH]
    return ""


class AccessibilitySnapshotter:
    """Render a tab's element tree as indented text lines.

    The page tags each surfaced element with a ``data-ref`` id in the same
    traversal that reports it. Existing ids are left untouched, so repeated
    snapshots of an unchanged page print identical ids. New ids are numbered
    from the session's :class:`RefRegistry`.
    """

    def __init__(self, session: BrowserSession) -> None:
        self._session = session

    def read_page(
        self,
        tab_id: int,
        max_depth: int = DEFAULT_DEPTH,
        filter: Optional[str] = None,
        start_ref: Optional[str] = None,
    ) -> str:
        registry = self._session.refs(tab_id)

        def collect(next_ref: int) -> tuple[list[dict[str, Any]], int]:
            payload = self._session.evaluate(
                tab_id,
                COLLECT_TREE_SCRIPT,
                {
                    "maxDepth": max_depth,
                    "interactiveOnly": filter == "interactive",
                    "startRef": start_ref,
                    "refAttribute": REF_ATTRIBUTE,
                    "refPrefix": REF_PREFIX,
                    "nextRef": next_ref,
                },
            ) or {}
            return payload.get("nodes") or [], payload.get("nextRef", next_ref)

        nodes = list(_walk(registry.mint(collect)))
        registry.observe(node.get("ref") for node in nodes)
        LOGGER.debug("Tab %s: snapshot surfaced %d elements", tab_id, len(nodes))

        lines = [_format_line(node) for node in nodes if node.get("ref")]
        if not lines:
            return EMPTY_SNAPSHOT
        return "\n".join(lines)


def _walk(nodes: list[dict[str, Any]]) -> Iterator[dict[str, Any]]:
    for node in nodes:
        yield node
        yield from _walk(node.get("children") or [])


def _format_line(node: dict[str, Any]) -> str:
    indent = "  " * int(node.get("depth", 0))
    line = f"{indent}[{node['ref']}] {resolve_role(node)}"
    name = resolve_name(node)
    if name:
        line += f': "{name}"'
    return line
