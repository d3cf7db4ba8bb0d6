"""Map model tool calls onto browser operations."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from pydantic import BaseModel

from ..browser.base import BrowserSession
from ..browser.locator import ElementLocator
from ..browser.snapshot import AccessibilitySnapshotter
from ..models import (
    ClickAction,
    ComputerToolInput,
    DragAction,
    FindInput,
    FindResult,
    FormInputInput,
    GetPageTextInput,
    KeyAction,
    NavigateInput,
    ReadPageInput,
    Screenshot,
    ScreenshotAction,
    ScrollAction,
    ScrollToAction,
    Tab,
    TabsContextInput,
    TabsContextResult,
    TabsCreateInput,
    TypeAction,
    WaitAction,
)

LOGGER = logging.getLogger(__name__)

ToolOutput = Any


class UnknownToolError(LookupError):
    """Raised when a tool name has no entry in the dispatch table."""


class ToolDispatcher:
    """Single entry point that turns a tool name and input into side effects.

    The dispatcher also tracks which tab the model is working in: the last tab a
    tool successfully operated on, or the most recently created one.
    """

    def __init__(
        self,
        session: BrowserSession,
        snapshotter: Optional[AccessibilitySnapshotter] = None,
        locator: Optional[ElementLocator] = None,
        *,
        wait_after_navigation: float = 0.0,
    ) -> None:
        self._session = session
        self._snapshotter = snapshotter or AccessibilitySnapshotter(session)
        self._locator = locator or ElementLocator(session)
        self._wait_after_navigation = wait_after_navigation
        self.current_tab_id = 1
        self._table: dict[str, tuple[type[BaseModel], Callable[[Any], ToolOutput]]] = {
            "computer": (ComputerToolInput, self._computer),
            "read_page": (ReadPageInput, self._read_page),
            "find": (FindInput, self._find),
            "get_page_text": (GetPageTextInput, self._get_page_text),
            "form_input": (FormInputInput, self._form_input),
            "navigate": (NavigateInput, self._navigate),
            "tabs_create": (TabsCreateInput, self._tabs_create),
            "tabs_context": (TabsContextInput, self._tabs_context),
        }

    @property
    def tool_names(self) -> frozenset[str]:
        return frozenset(self._table)

    def execute(self, tool_name: str, tool_input: Optional[dict[str, Any]] = None) -> ToolOutput:
        """Validate ``tool_input`` and run the tool; errors propagate to the caller."""

        entry = self._table.get(tool_name)
        if entry is None:
            raise UnknownToolError(f"Unknown tool: {tool_name}")
        model, handler = entry
        payload = model.model_validate(tool_input or {})
        LOGGER.info("Executing tool %s with %s", tool_name, _summarize(tool_input))
        started = time.monotonic()
        result = handler(payload)
        tab_id = getattr(payload, "tab_id", None)
        if tab_id is not None:
            self.current_tab_id = tab_id
        LOGGER.info(
            "Tool %s completed in %.0f ms",
            tool_name,
            (time.monotonic() - started) * 1000,
        )
        return result

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def _computer(self, payload: ComputerToolInput) -> Screenshot:
        for action in payload.expanded():
            self._run_action(payload.tab_id, action)
        return self._session.screenshot(payload.tab_id)

    def _run_action(self, tab_id: int, action: Any) -> None:
        LOGGER.debug("Tab %s: action %s", tab_id, action.action)
        session = self._session
        if isinstance(action, ScreenshotAction):
            return
        if isinstance(action, ClickAction):
            if action.ref is not None:
                session.click_by_ref(tab_id, action.ref, action.button, action.click_count)
            else:
                session.click(tab_id, action.coordinate, action.button, action.click_count)
        elif isinstance(action, TypeAction):
            session.type_text(tab_id, action.text)
        elif isinstance(action, KeyAction):
            session.press_key(tab_id, action.text)
        elif isinstance(action, WaitAction):
            session.wait(tab_id, action.duration)
        elif isinstance(action, ScrollAction):
            session.scroll(tab_id, action.coordinate, action.scroll_parameters)
        elif isinstance(action, DragAction):
            session.drag(tab_id, action.start_coordinate, action.end_coordinate)
        elif isinstance(action, ScrollToAction):
            session.scroll_to(tab_id, action.ref)
        else:  # pragma: no cover - the action union is closed
            raise TypeError(f"Unsupported action: {action!r}")

    def _read_page(self, payload: ReadPageInput) -> str:
        return self._snapshotter.read_page(
            payload.tab_id,
            max_depth=payload.depth,
            filter=payload.filter,
            start_ref=payload.ref_id,
        )

    def _find(self, payload: FindInput) -> FindResult:
        elements = self._locator.find_elements(payload.tab_id, payload.query)
        return FindResult(elements=elements, total=len(elements))

    def _get_page_text(self, payload: GetPageTextInput) -> str:
        return self._session.get_page_text(payload.tab_id)

    def _form_input(self, payload: FormInputInput) -> str:
        kind = self._session.form_input(payload.tab_id, payload.ref, payload.value)
        return f"Set {kind} element {payload.ref} to {payload.value!r}"

    def _navigate(self, payload: NavigateInput) -> Screenshot:
        self._session.navigate(payload.tab_id, payload.url)
        if self._wait_after_navigation > 0:
            self._session.wait(payload.tab_id, self._wait_after_navigation)
        return self._session.screenshot(payload.tab_id)

    def _tabs_create(self, payload: TabsCreateInput) -> Tab:
        tab = self._session.create_tab(payload.url)
        self.current_tab_id = tab.id
        return tab

    def _tabs_context(self, payload: TabsContextInput) -> TabsContextResult:
        tabs = self._session.get_tabs_context()
        known = [tab.id for tab in tabs]
        current = self.current_tab_id if self.current_tab_id in known else (known[0] if known else 1)
        return TabsContextResult(
            tabs=[tab.model_copy(update={"active": tab.id == current}) for tab in tabs],
            current_tab_id=current,
        )


def _summarize(tool_input: Optional[dict[str, Any]], limit: int = 200) -> str:
    text = repr(tool_input or {})
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
