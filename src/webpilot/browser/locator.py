"""Substring search over the visible elements of a tab."""

from __future__ import annotations

import logging
from typing import Any

from ..models import ElementBox, FoundElement
from .base import BrowserSession
from .refs import REF_ATTRIBUTE, REF_PREFIX
from .scripts import FIND_SCRIPT

LOGGER = logging.getLogger(__name__)

MAX_RESULTS = 20


class ElementLocator:
    """Find elements whose text or attributes contain a query.

    Matches are reported in document order and the search stops once
    :data:`MAX_RESULTS` elements matched. The page tags untagged matches while
    searching, numbering them from the session's registry, the same authority
    the snapshotter uses. Coordinates describe the layout at the time of the
    call only.
    """

    def __init__(self, session: BrowserSession, limit: int = MAX_RESULTS) -> None:
        self._session = session
        self._limit = limit

    def find_elements(self, tab_id: int, query: str) -> list[FoundElement]:
        registry = self._session.refs(tab_id)

        def search(next_ref: int) -> tuple[list[dict[str, Any]], int]:
            payload = self._session.evaluate(
                tab_id,
                FIND_SCRIPT,
                {
                    "query": query,
                    "limit": self._limit,
                    "refAttribute": REF_ATTRIBUTE,
                    "refPrefix": REF_PREFIX,
                    "nextRef": next_ref,
                },
            ) or {}
            return payload.get("matches") or [], payload.get("nextRef", next_ref)

        matches = registry.mint(search)[: self._limit]
        registry.observe(match.get("ref") for match in matches)

        elements: list[FoundElement] = []
        for match in matches:
            if not match.get("ref"):
                continue
            rect = match.get("rect") or {}
            width = float(rect.get("width", 0))
            height = float(rect.get("height", 0))
            elements.append(
                FoundElement(
                    ref_id=match["ref"],
                    tag=match.get("tag", ""),
                    text=match.get("text") or None,
                    role=match.get("role") or None,
                    coordinates=ElementBox(
                        x=float(rect.get("x", 0)) + width / 2,
                        y=float(rect.get("y", 0)) + height / 2,
                        width=width,
                        height=height,
                    ),
                )
            )
        LOGGER.debug("Tab %s: %d elements matched %r", tab_id, len(elements), query)
        return elements
