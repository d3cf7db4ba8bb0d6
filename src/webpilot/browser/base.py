"""Browser session abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from ..models import Coordinate, ScrollParameters, Screenshot, Tab
from .refs import RefRegistry


class BrowserActionError(RuntimeError):
    """Raised when executing a browser operation fails."""


class BrowserNotInitializedError(BrowserActionError):
    """Raised when the browser is used before ``start`` or after ``stop``."""


class TabNotFoundError(BrowserActionError):
    """Raised when a tab id has no backing page."""


class ElementNotFoundError(BrowserActionError):
    """Raised when a ref id does not resolve to an element."""


class ElementNotVisibleError(ElementNotFoundError):
    """Raised when a ref resolves to an element without renderable geometry."""


class NavigationError(BrowserActionError):
    """Raised when navigation times out or the driver reports a failure."""


FormValue = Union[str, bool, int, float]


class BrowserSession(ABC):
    """Interface for a multi-tab, automation-capable browser session.

    Every tab-scoped operation raises :class:`TabNotFoundError` for unknown ids
    and :class:`BrowserNotInitializedError` when the session is not running.
    """

    @abstractmethod
    def start(self) -> None:
        """Launch the browser and register the first tab."""

    @abstractmethod
    def stop(self) -> None:
        """Terminate the browser session."""

    @abstractmethod
    def create_tab(self, url: Optional[str] = None) -> Tab:
        """Open a tab with the next free id, optionally navigating it."""

    @abstractmethod
    def get_tabs_context(self) -> list[Tab]:
        """Return every known tab with its current url and title."""

    @abstractmethod
    def screenshot(self, tab_id: int) -> Screenshot:
        """Capture the visible viewport of a tab."""

    @abstractmethod
    def click(
        self,
        tab_id: int,
        coordinate: Coordinate,
        button: str = "left",
        click_count: int = 1,
    ) -> None:
        """Click at a viewport coordinate."""

    @abstractmethod
    def click_by_ref(
        self,
        tab_id: int,
        ref: str,
        button: str = "left",
        click_count: int = 1,
    ) -> None:
        """Click the center of the element tagged with ``ref``."""

    @abstractmethod
    def type_text(self, tab_id: int, text: str) -> None:
        """Type text into the focused element."""

    @abstractmethod
    def press_key(self, tab_id: int, key: str) -> None:
        """Press a key or a ``+``-joined key combination."""

    @abstractmethod
    def scroll(self, tab_id: int, coordinate: Coordinate, params: ScrollParameters) -> None:
        """Scroll with the mouse wheel at a coordinate."""

    @abstractmethod
    def scroll_to(self, tab_id: int, ref: str) -> None:
        """Scroll the element tagged with ``ref`` into view."""

    @abstractmethod
    def drag(self, tab_id: int, start: Coordinate, end: Coordinate) -> None:
        """Press the left button at ``start``, move to ``end`` and release."""

    @abstractmethod
    def navigate(self, tab_id: int, url: str) -> None:
        """Load ``url`` or move through history with ``back``/``forward``."""

    @abstractmethod
    def wait(self, tab_id: int, seconds: float) -> None:
        """Suspend for ``seconds`` (clamped) while the page keeps running."""

    @abstractmethod
    def get_page_text(self, tab_id: int) -> str:
        """Return the readable text of the page."""

    @abstractmethod
    def form_input(self, tab_id: int, ref: str, value: FormValue) -> str:
        """Set the value of a form element and return its kind."""

    @abstractmethod
    def evaluate(self, tab_id: int, script: str, arg: Any = None) -> Any:
        """Run a script in the page and return its JSON-serialisable result."""

    @abstractmethod
    def refs(self, tab_id: int) -> RefRegistry:
        """Return the ref registry used for the tab (shared by the whole session)."""
