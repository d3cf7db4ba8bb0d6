from __future__ import annotations

import pytest

from fakes import FakeContext, FakePage, el

from webpilot.browser.playwright_session import PlaywrightBrowserSession
from webpilot.config import BrowserConfig


def sample_body():
    return el(
        "body",
        "",
        el(
            "nav",
            "",
            el("a", "Home", href="/"),
            el("a", "Pricing", href="/pricing"),
        ),
        el(
            "main",
            "",
            el("h1", "Welcome"),
            el(
                "form",
                "",
                el("input", "", type="text", placeholder="Email", aria_label="Email address"),
                el("input", "", type="checkbox", id="terms"),
                el("select", "", id="plan"),
                el("button", "Sign up", id="submit", rect=(100, 200, 80, 30)),
            ),
            el("div", "Secret banner", hidden=True),
            el("div", "Collapsed", rect=(0, 0, 0, 0), id="collapsed", role="button"),
        ),
    )


@pytest.fixture
def page() -> FakePage:
    return FakePage(sample_body())


@pytest.fixture
def context(page: FakePage) -> FakeContext:
    return FakeContext([page])


@pytest.fixture
def session(context: FakeContext):
    browser = PlaywrightBrowserSession(BrowserConfig(), context=context)
    browser.start()
    yield browser
    browser.stop()
