from __future__ import annotations

import pytest
from pydantic import ValidationError

from webpilot.browser.base import ElementNotFoundError, TabNotFoundError
from webpilot.models import FindResult, Screenshot, Tab, TabsContextResult
from webpilot.tools.definitions import TOOL_DEFINITIONS, TOOL_NAMES
from webpilot.tools.dispatcher import ToolDispatcher, UnknownToolError


@pytest.fixture
def dispatcher(session) -> ToolDispatcher:
    return ToolDispatcher(session, wait_after_navigation=2.0)


def test_definitions_match_dispatch_table(dispatcher) -> None:
    assert TOOL_NAMES == dispatcher.tool_names
    assert len(TOOL_DEFINITIONS) == 8
    for definition in TOOL_DEFINITIONS:
        assert definition["description"]
        assert definition["input_schema"]["type"] == "object"


def test_unknown_tool(dispatcher) -> None:
    with pytest.raises(UnknownToolError, match="Unknown tool: teleport"):
        dispatcher.execute("teleport", {})


def test_batch_runs_in_order_then_screenshots(dispatcher, page) -> None:
    result = dispatcher.execute(
        "computer",
        {
            "tab_id": 1,
            "actions": [
                {"action": "left_click", "coordinate": [379, 321]},
                {"action": "type", "text": "Hello world"},
                {"action": "key", "text": "Return"},
            ],
        },
    )

    assert isinstance(result, Screenshot)
    assert page.log == [
        ("click", 379, 321, "left", 1),
        ("type", "Hello world", None),
        ("press", "Enter"),
        ("screenshot",),
    ]


def test_screenshot_action_captures_once(dispatcher, page) -> None:
    result = dispatcher.execute("computer", {"tab_id": 1, "action": {"action": "screenshot"}})

    assert isinstance(result, Screenshot)
    assert page.log == [("screenshot",)]


def test_failing_action_stops_the_batch(dispatcher, page) -> None:
    with pytest.raises(ElementNotFoundError):
        dispatcher.execute(
            "computer",
            {
                "tab_id": 1,
                "actions": [
                    {"action": "left_click", "ref": "ref_77"},
                    {"action": "type", "text": "never typed"},
                ],
            },
        )

    assert page.log == []


@pytest.mark.parametrize(
    "tool_input",
    [
        {"tab_id": 1, "action": {"action": "left_click"}},
        {"tab_id": 1, "action": {"action": "left_click", "coordinate": [1, 2], "ref": "ref_1"}},
        {
            "tab_id": 1,
            "action": {"action": "screenshot"},
            "actions": [{"action": "screenshot"}],
        },
        {"tab_id": 1, "action": {"action": "fly"}},
        {"action": {"action": "screenshot"}},
    ],
)
def test_invalid_computer_input_is_rejected(dispatcher, page, tool_input) -> None:
    with pytest.raises(ValidationError):
        dispatcher.execute("computer", tool_input)

    assert page.log == []


def test_right_and_double_click(dispatcher, page) -> None:
    dispatcher.execute(
        "computer",
        {
            "tab_id": 1,
            "actions": [
                {"action": "right_click", "coordinate": [1, 1]},
                {"action": "double_click", "coordinate": [2, 2]},
            ],
        },
    )

    assert page.log[:2] == [("click", 1, 1, "right", 1), ("click", 2, 2, "left", 2)]


def test_wait_and_scroll_actions(dispatcher, page) -> None:
    dispatcher.execute(
        "computer",
        {
            "tab_id": 1,
            "actions": [
                {"action": "wait", "duration": 45},
                {
                    "action": "scroll",
                    "coordinate": [640, 360],
                    "scroll_parameters": {"scroll_direction": "up", "scroll_amount": 1},
                },
            ],
        },
    )

    assert page.log[:3] == [("wait", 30000.0), ("move", 640, 360, 1), ("wheel", 0.0, -100.0)]


def test_navigate_waits_then_screenshots(dispatcher, page) -> None:
    result = dispatcher.execute("navigate", {"tab_id": 1, "url": "example.com"})

    assert isinstance(result, Screenshot)
    assert result.timestamp > 0
    assert page.url == "https://example.com"
    assert page.log[1:] == [("wait", 2000.0), ("screenshot",)]


def test_read_page_and_find_share_ids(dispatcher) -> None:
    tree = dispatcher.execute("read_page", {"tab_id": 1, "filter": "interactive"})
    found = dispatcher.execute("find", {"tab_id": 1, "query": "Pricing"})

    assert '[ref_1] link: "Pricing"' in tree
    assert isinstance(found, FindResult)
    assert found.total == len(found.elements)
    assert found.elements[-1].ref_id == "ref_1"


def test_form_input_reports_what_was_set(dispatcher, page) -> None:
    found = dispatcher.execute("find", {"tab_id": 1, "query": "email"})
    ref = found.elements[0].ref_id

    message = dispatcher.execute("form_input", {"tab_id": 1, "ref": ref, "value": "a@b.c"})

    assert message == f"Set text element {ref} to 'a@b.c'"
    assert page.query(f'[data-ref="{ref}"]').value == "a@b.c"


def test_get_page_text(dispatcher, page) -> None:
    page.page_text = "Welcome"

    assert dispatcher.execute("get_page_text", {"tab_id": 1}) == "Welcome"


def test_tabs_follow_the_model(dispatcher) -> None:
    created = dispatcher.execute("tabs_create", {})

    assert isinstance(created, Tab)
    assert created.id == 2
    assert dispatcher.current_tab_id == 2

    context = dispatcher.execute("tabs_context", {})
    assert isinstance(context, TabsContextResult)
    assert context.current_tab_id == 2
    assert [(tab.id, tab.active) for tab in context.tabs] == [(1, False), (2, True)]

    dispatcher.execute("get_page_text", {"tab_id": 1})
    assert dispatcher.current_tab_id == 1


def test_unknown_tab_propagates(dispatcher) -> None:
    with pytest.raises(TabNotFoundError):
        dispatcher.execute("get_page_text", {"tab_id": 9})

    assert dispatcher.current_tab_id == 1
