"""Playwright-powered browser session implementation."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from playwright.sync_api import BrowserContext, Error, Locator, Page, sync_playwright

from ..config import BrowserConfig
from ..models import Coordinate, Screenshot, ScrollParameters, Tab
from .base import (
    BrowserActionError,
    BrowserNotInitializedError,
    BrowserSession,
    ElementNotFoundError,
    ElementNotVisibleError,
    FormValue,
    NavigationError,
    TabNotFoundError,
)
from .input import HISTORY_TARGETS, clamp_wait, normalize_url, scroll_delta, split_key_combo
from .refs import RefRegistry
from .scripts import CURSOR_SCRIPT, FORM_INPUT_SCRIPT, PAGE_TEXT_SCRIPT

LOGGER = logging.getLogger(__name__)

_WAIT_UNTIL = "domcontentloaded"


class PlaywrightBrowserSession(BrowserSession):
    """Browser session backed by Playwright.

    Tabs get monotonically increasing ids starting at 1. Each tab owns an
    interaction lock that every input-simulating operation holds while it runs.
    All tabs share one :class:`RefRegistry`, so no two elements of a session
    ever carry the same ref id.

    ``context`` attaches the session to an existing browser context instead of
    launching Chromium; such a context is not closed by :meth:`stop`.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        screenshot_quality: int = 80,
        context: Optional[BrowserContext] = None,
    ) -> None:
        self._config = config or BrowserConfig()
        self._screenshot_quality = screenshot_quality
        self._playwright = None
        self._browser = None
        self._context = context
        self._owns_context = context is None
        self._pages: dict[int, Page] = {}
        self._refs = RefRegistry()
        self._locks: dict[int, threading.Lock] = {}
        self._next_tab_id = 1
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._started:
            return
        if self._context is None:
            self._context = self._launch()
        pages = self._context.pages
        page = pages[0] if pages else self._context.new_page()
        self._started = True
        tab_id = self._register(page)
        LOGGER.info("Browser session started with tab %s", tab_id)

    def _launch(self) -> BrowserContext:
        LOGGER.debug("Starting Playwright browser session")
        self._playwright = sync_playwright().start()
        launch_kwargs = {
            "headless": self._config.headless,
            "args": [
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
                "--disable-blink-features=AutomationControlled",
            ],
        }
        user_data_dir: Optional[Path] = self._config.profile_path
        viewport = self._viewport()
        if user_data_dir:
            user_data_dir.mkdir(parents=True, exist_ok=True)
            return self._playwright.chromium.launch_persistent_context(
                str(user_data_dir),
                **launch_kwargs,
                viewport=viewport,
            )
        self._browser = self._playwright.chromium.launch(**launch_kwargs)
        return self._browser.new_context(viewport=viewport)

    def stop(self) -> None:
        LOGGER.debug("Stopping Playwright browser session")
        try:
            if self._context and self._owns_context:
                self._context.close()
        finally:
            if self._browser:
                self._browser.close()
            if self._playwright:
                self._playwright.stop()
        if self._owns_context:
            self._context = None
        self._browser = None
        self._playwright = None
        self._pages.clear()
        self._locks.clear()
        self._started = False

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    def create_tab(self, url: Optional[str] = None) -> Tab:
        if not self._started or self._context is None:
            raise BrowserNotInitializedError("Browser not initialized")
        with self._driver_errors("create tab"):
            page = self._context.new_page()
            page.set_viewport_size(self._viewport())
        tab_id = self._register(page)
        LOGGER.info("Created tab %s", tab_id)
        if url:
            self.navigate(tab_id, url)
        return Tab(id=tab_id, url=page.url, title=self._title(page), active=True)

    def get_tabs_context(self) -> list[Tab]:
        self._ensure_started()
        return [
            Tab(id=tab_id, url=page.url, title=self._title(page), active=False)
            for tab_id, page in self._pages.items()
        ]

    def refs(self, tab_id: int) -> RefRegistry:
        self._page(tab_id)
        return self._refs

    # ------------------------------------------------------------------
    # Perception
    # ------------------------------------------------------------------

    def screenshot(self, tab_id: int) -> Screenshot:
        page = self._page(tab_id)
        fmt = self._config.screenshot_format
        kwargs: dict[str, Any] = {"type": fmt, "full_page": False}
        if fmt == "jpeg":
            kwargs["quality"] = self._screenshot_quality
        with self._driver_errors("screenshot"):
            image = page.screenshot(**kwargs)
        viewport = page.viewport_size or self._viewport()
        return Screenshot(
            image=image,
            width=viewport["width"],
            height=viewport["height"],
            timestamp=time.time(),
            media_type=f"image/{fmt}",
        )

    def get_page_text(self, tab_id: int) -> str:
        return self.evaluate(tab_id, PAGE_TEXT_SCRIPT) or ""

    def evaluate(self, tab_id: int, script: str, arg: Any = None) -> Any:
        page = self._page(tab_id)
        with self._driver_errors("evaluate"):
            return page.evaluate(script, arg)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def click(
        self,
        tab_id: int,
        coordinate: Coordinate,
        button: str = "left",
        click_count: int = 1,
    ) -> None:
        with self._interaction(tab_id, "click") as page:
            self._click_at(page, coordinate[0], coordinate[1], button, click_count)

    def click_by_ref(
        self,
        tab_id: int,
        ref: str,
        button: str = "left",
        click_count: int = 1,
    ) -> None:
        with self._interaction(tab_id, "click") as page:
            locator = self._resolve_ref(page, ref)
            _require_area(ref, locator.bounding_box())
            locator.scroll_into_view_if_needed(timeout=self._timeout_ms())
            box = _require_area(ref, locator.bounding_box())
            center_x = box["x"] + box["width"] / 2
            center_y = box["y"] + box["height"] / 2
            self._click_at(page, center_x, center_y, button, click_count)

    def type_text(self, tab_id: int, text: str) -> None:
        with self._interaction(tab_id, "type") as page:
            page.keyboard.type(text)

    def press_key(self, tab_id: int, key: str) -> None:
        modifiers, main = split_key_combo(key)
        with self._interaction(tab_id, "key press") as page:
            pressed: list[str] = []
            try:
                for modifier in modifiers:
                    page.keyboard.down(modifier)
                    pressed.append(modifier)
                page.keyboard.press(main)
            finally:
                for modifier in reversed(pressed):
                    page.keyboard.up(modifier)

    def scroll(self, tab_id: int, coordinate: Coordinate, params: ScrollParameters) -> None:
        delta_x, delta_y = scroll_delta(params)
        with self._interaction(tab_id, "scroll") as page:
            page.mouse.move(coordinate[0], coordinate[1])
            page.mouse.wheel(delta_x, delta_y)

    def scroll_to(self, tab_id: int, ref: str) -> None:
        with self._interaction(tab_id, "scroll") as page:
            locator = self._resolve_ref(page, ref)
            _require_area(ref, locator.bounding_box())
            locator.scroll_into_view_if_needed(timeout=self._timeout_ms())

    def drag(self, tab_id: int, start: Coordinate, end: Coordinate) -> None:
        with self._interaction(tab_id, "drag") as page:
            self._show_cursor(page, start[0], start[1])
            page.mouse.move(start[0], start[1])
            page.mouse.down()
            page.mouse.move(end[0], end[1], steps=10)
            page.mouse.up()
            self._show_cursor(page, end[0], end[1])

    def form_input(self, tab_id: int, ref: str, value: FormValue) -> str:
        selector = RefRegistry.selector(ref)
        if selector is None:
            raise ElementNotFoundError(f"Element with ref {ref} not found")
        with self._interaction(tab_id, "form input") as page:
            kind = page.evaluate(FORM_INPUT_SCRIPT, {"selector": selector, "value": value})
        if kind is None:
            raise ElementNotFoundError(f"Element with ref {ref} not found")
        return kind

    # ------------------------------------------------------------------
    # Navigation and waiting
    # ------------------------------------------------------------------

    def navigate(self, tab_id: int, url: str) -> None:
        page = self._page(tab_id)
        target = url.strip()
        timeout = self._timeout_ms()
        try:
            if target.lower() in HISTORY_TARGETS:
                LOGGER.info("Tab %s: history %s", tab_id, target.lower())
                if target.lower() == "back":
                    page.go_back(wait_until=_WAIT_UNTIL, timeout=timeout)
                else:
                    page.go_forward(wait_until=_WAIT_UNTIL, timeout=timeout)
            else:
                target = normalize_url(target)
                LOGGER.info("Tab %s: navigating to %s", tab_id, target)
                page.goto(target, wait_until=_WAIT_UNTIL, timeout=timeout)
        except Error as exc:
            raise NavigationError(f"Navigation to {target} failed: {exc}") from exc

    def wait(self, tab_id: int, seconds: float) -> None:
        page = self._page(tab_id)
        duration = clamp_wait(seconds)
        LOGGER.debug("Tab %s: waiting %.2f seconds", tab_id, duration)
        with self._driver_errors("wait"):
            page.wait_for_timeout(duration * 1000)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _register(self, page: Page) -> int:
        tab_id = self._next_tab_id
        self._next_tab_id += 1
        self._pages[tab_id] = page
        self._locks[tab_id] = threading.Lock()
        return tab_id

    def _ensure_started(self) -> None:
        if not self._started:
            raise BrowserNotInitializedError("Browser not initialized")

    def _page(self, tab_id: int) -> Page:
        self._ensure_started()
        page = self._pages.get(tab_id)
        if page is None:
            available = ", ".join(str(key) for key in self._pages)
            raise TabNotFoundError(f"Tab {tab_id} not found. Available tabs: [{available}]")
        return page

    @contextmanager
    def _interaction(self, tab_id: int, operation: str) -> Iterator[Page]:
        page = self._page(tab_id)
        with self._locks[tab_id]:
            with self._driver_errors(operation):
                yield page

    @contextmanager
    def _driver_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except Error as exc:
            raise BrowserActionError(f"{operation} failed: {exc}") from exc

    def _resolve_ref(self, page: Page, ref: str) -> Locator:
        selector = RefRegistry.selector(ref)
        if selector is None:
            raise ElementNotFoundError(f"Element with ref {ref} not found")
        locator = page.locator(selector)
        if locator.count() == 0:
            raise ElementNotFoundError(f"Element with ref {ref} not found")
        return locator.first

    def _click_at(self, page: Page, x: float, y: float, button: str, click_count: int) -> None:
        self._show_cursor(page, x, y)
        page.mouse.click(x, y, button=button, click_count=click_count)

    def _show_cursor(self, page: Page, x: float, y: float) -> None:
        if not self._config.show_cursor:
            return
        try:
            page.evaluate(CURSOR_SCRIPT, {"x": x, "y": y})
        except Error:  # pragma: no cover - overlay is cosmetic
            LOGGER.debug("Could not draw cursor overlay", exc_info=True)

    def _viewport(self) -> dict[str, int]:
        return {"width": self._config.viewport_width, "height": self._config.viewport_height}

    def _timeout_ms(self) -> float:
        return self._config.navigation_timeout * 1000

    @staticmethod
    def _title(page: Page) -> str:
        try:
            return page.title()
        except Error:  # pragma: no cover - page closed or navigating
            LOGGER.debug("Could not read page title", exc_info=True)
            return ""


def _require_area(ref: str, box: Optional[dict[str, float]]) -> dict[str, float]:
    if not box or box["width"] <= 0 or box["height"] <= 0:
        raise ElementNotVisibleError(f"Element {ref} has no visible geometry")
    return box
