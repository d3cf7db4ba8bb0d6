import pytest

from webpilot.browser.input import clamp_wait, normalize_key, normalize_url, scroll_delta, split_key_combo
from webpilot.browser.refs import RefRegistry
from webpilot.models import ScrollParameters


@pytest.mark.parametrize(
    ("combo", "expected"),
    [
        ("a", ([], "a")),
        ("Return", ([], "Enter")),
        ("cmd+a", (["Meta"], "a")),
        ("ctrl+shift+Tab", (["Control", "Shift"], "Tab")),
        ("ctrl++", (["Control"], "+")),
        ("+", ([], "+")),
        ("hyper+x", ([], "x")),
        ("shift+", ([], "Shift")),
        ("ctrl+shift+", (["Control"], "Shift")),
    ],
)
def test_split_key_combo(combo, expected) -> None:
    assert split_key_combo(combo) == expected


def test_normalize_key_keeps_unknown_names() -> None:
    assert normalize_key("PageDown") == "PageDown"
    assert normalize_key("page_down") == "PageDown"
    assert normalize_key("F5") == "F5"
    assert normalize_key(" a") == "a"
    assert normalize_key(" PageUp ") == "PageUp"


def test_normalize_url() -> None:
    assert normalize_url("example.com") == "https://example.com"
    assert normalize_url("http://example.com") == "http://example.com"
    assert normalize_url(" https://example.com/a ") == "https://example.com/a"


def test_scroll_delta_directions() -> None:
    assert scroll_delta(ScrollParameters(scroll_direction="up", scroll_amount=2)) == (0.0, -200.0)
    assert scroll_delta(ScrollParameters(scroll_direction="right")) == (300.0, 0.0)
    assert scroll_delta(ScrollParameters(scroll_direction="down", scroll_amount="max")) == (0.0, 10000.0)


def test_clamp_wait() -> None:
    assert clamp_wait(-1) == 0.0
    assert clamp_wait(2.5) == 2.5
    assert clamp_wait(600) == 30.0


def test_ref_registry_mints_monotonically() -> None:
    registry = RefRegistry()
    seen: list[int] = []

    def tag_three(start: int) -> tuple[str, int]:
        seen.append(start)
        return "tagged", start + 3

    assert registry.mint(tag_three) == "tagged"
    registry.observe(["ref_10", None, "custom"])
    registry.mint(tag_three)
    registry.mint(lambda start: (None, 0))

    assert seen == [0, 11]
    assert registry.next_index == 14
    assert "custom" in registry
    assert len(registry) == 2


def test_ref_registry_selector_rejects_malformed_ids() -> None:
    assert RefRegistry.selector("ref_3") == '[data-ref="ref_3"]'
    assert RefRegistry.selector('ref"]') is None
    assert RefRegistry.selector("") is None
