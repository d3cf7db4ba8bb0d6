"""Session-wide registry of element reference ids."""

from __future__ import annotations

import re
import threading
from typing import Callable, Iterable, Optional, TypeVar

REF_ATTRIBUTE = "data-ref"
REF_PREFIX = "ref_"

_REF_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_NUMBERED_REF = re.compile(rf"^{REF_PREFIX}(\d+)$")

T = TypeVar("T")


class RefRegistry:
    """Hand out ref ids for every tab of a session and map them to selectors.

    Ids are monotonic and never reused for the lifetime of the session, across
    tabs and navigations. The page itself stores the id in the ``data-ref``
    attribute and tags elements during the traversal that reports them;
    callers resolve an id to a selector each time they need the element and
    never keep element handles around.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next = 0
        self._known: set[str] = set()

    def mint(self, tagger: Callable[[int], tuple[T, int]]) -> T:
        """Run ``tagger`` with the first free index and advance past what it used.

        ``tagger`` receives the index to number new ids from and returns its
        result together with the first index it left unused. The registry stays
        locked meanwhile, so concurrent taggers never get overlapping ranges.
        """

        with self._lock:
            result, next_index = tagger(self._next)
            self._next = max(self._next, int(next_index))
            return result

    def observe(self, refs: Iterable[Optional[str]]) -> None:
        """Record ids reported by the page so new ids never collide with them."""

        with self._lock:
            for ref in refs:
                if not ref:
                    continue
                self._known.add(ref)
                match = _NUMBERED_REF.match(ref)
                if match:
                    self._next = max(self._next, int(match.group(1)) + 1)

    @property
    def next_index(self) -> int:
        with self._lock:
            return self._next

    def __contains__(self, ref: object) -> bool:
        with self._lock:
            return ref in self._known

    def __len__(self) -> int:
        with self._lock:
            return len(self._known)

    @staticmethod
    def selector(ref: str) -> Optional[str]:
        """Return the CSS selector for ``ref`` or ``None`` for malformed ids."""

        if not _REF_PATTERN.match(ref):
            return None
        return f'[{REF_ATTRIBUTE}="{ref}"]'
