from __future__ import annotations

from typing import Any, Sequence

import httpx
import pytest

from fakes import FakeContext, FakePage

from webpilot.browser.playwright_session import PlaywrightBrowserSession
from webpilot.config import RunnerConfig
from webpilot.llm.base import LLMClient
from webpilot.llm.mock import ScriptedLLM
from webpilot.models import (
    ImageBlock,
    Message,
    ModelResponse,
    NotificationEvent,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from webpilot.notifications.base import Notifier
from webpilot.orchestrator.runner import BrowserAgent, TaskOutcome
from webpilot.tools.definitions import TOOL_DEFINITIONS

SCREENSHOT = {"tab_id": 1, "action": {"action": "screenshot"}}


class CollectingNotifier(Notifier):
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)


class RepeatingLLM(LLMClient):
    """Answer every turn with the same tool calls."""

    def __init__(self, *calls: tuple[str, dict[str, Any]]) -> None:
        self._calls = calls
        self.turns = 0

    def chat(self, messages: Sequence[Message], tools, system_prompt: str) -> ModelResponse:
        self.turns += 1
        return ModelResponse(
            content=[
                ToolUseBlock(id=f"call_{self.turns}_{index}", name=name, input=tool_input)
                for index, (name, tool_input) in enumerate(self._calls)
            ],
            stop_reason="tool_use",
        )


class FailingLLM(LLMClient):
    def chat(self, messages, tools, system_prompt) -> ModelResponse:
        raise httpx.ConnectError("connection refused")


def tool_call(name: str, tool_input: dict[str, Any], call_id: str = "call_1") -> ModelResponse:
    return ModelResponse(
        content=[ToolUseBlock(id=call_id, name=name, input=tool_input)],
        stop_reason="tool_use",
    )


def reply(text: str) -> ModelResponse:
    return ModelResponse(content=[TextBlock(text=text)], stop_reason="end_turn")


def make_agent(llm: LLMClient, notifier: Notifier | None = None, **agent: Any) -> BrowserAgent:
    config = RunnerConfig.model_validate(
        {"agent": {"default_wait_after_navigation": 0, **agent}}
    )
    browser = PlaywrightBrowserSession(context=FakeContext([FakePage()]))
    agent_instance = BrowserAgent(config=config, llm=llm, browser=browser, notifier=notifier)
    agent_instance.initialize()
    return agent_instance


def test_task_completes_with_final_text() -> None:
    llm = ScriptedLLM([tool_call("computer", SCREENSHOT), reply("Found the pricing page.")])
    notifier = CollectingNotifier()
    agent = make_agent(llm, notifier)

    result = agent.execute_task("Open the pricing page")

    assert result == "Found the pricing page."
    assert agent.state.outcome is TaskOutcome.COMPLETED
    assert agent.state.last_screenshot is not None
    assert [event.type for event in notifier.events] == ["task_started", "task_finished"]

    first_call = llm.calls[0]
    assert first_call.tools == TOOL_DEFINITIONS
    assert "web automation agent" in first_call.system_prompt
    assert first_call.messages[0].content == "Open the pricing page"

    roles = [message.role for message in agent.messages]
    assert roles == ["user", "assistant", "user", "assistant"]
    tool_result = agent.messages[2].content[0]
    assert isinstance(tool_result, ToolResultBlock)
    assert tool_result.tool_use_id == "call_1"
    assert isinstance(tool_result.content[0], ImageBlock)
    assert tool_result.content[1].text.startswith("Screenshot captured at ")

    history = agent.action_history
    assert len(history) == 1
    assert history[0].tool == "computer"
    assert history[0].error is None
    assert history[0].duration_ms >= 0


def test_empty_final_reply_uses_default_text() -> None:
    agent = make_agent(ScriptedLLM([ModelResponse(content=[])]))

    assert agent.execute_task("Do nothing") == "Task completed"
    assert agent.state.outcome is TaskOutcome.COMPLETED


def test_max_tokens_without_tools_is_treated_as_final() -> None:
    response = ModelResponse(content=[TextBlock(text="Partial answer")], stop_reason="max_tokens")
    agent = make_agent(ScriptedLLM([response]))

    assert agent.execute_task("Summarize") == "Partial answer"


def test_action_budget_stops_the_task() -> None:
    llm = RepeatingLLM(("computer", SCREENSHOT))
    notifier = CollectingNotifier()
    agent = make_agent(llm, notifier, max_actions_per_task=4)

    result = agent.execute_task("Loop forever")

    assert result == "Task terminated after 4 actions"
    assert agent.state.outcome is TaskOutcome.BUDGET_EXCEEDED
    assert len(agent.action_history) == 4
    assert llm.turns == 4
    assert notifier.events[-1].type == "task_failed"


def test_action_budget_counts_individual_tool_calls() -> None:
    llm = RepeatingLLM(("computer", SCREENSHOT), ("get_page_text", {"tab_id": 1}))
    agent = make_agent(llm, max_actions_per_task=3)

    result = agent.execute_task("Loop forever")

    assert result == "Task terminated after 3 actions"
    assert [entry.tool for entry in agent.action_history] == ["computer", "get_page_text", "computer"]
    last_assistant = agent.messages[-2]
    assert [block.name for block in last_assistant.content] == ["computer"]


def test_consecutive_failures_abort_after_max_retries() -> None:
    llm = RepeatingLLM(("teleport", {}))
    notifier = CollectingNotifier()
    agent = make_agent(llm, notifier)

    result = agent.execute_task("Break things")

    assert result == "Task failed after 3 retries: Unknown tool: teleport"
    assert agent.state.outcome is TaskOutcome.RETRIES_EXCEEDED
    assert llm.turns == 3
    assert len(agent.action_history) == 3
    assert all(entry.error == "Unknown tool: teleport" for entry in agent.action_history)
    assert [event.type for event in notifier.events].count("tool_failed") == 3


def test_failures_are_reported_to_the_model() -> None:
    llm = ScriptedLLM(
        [
            tool_call("computer", {"tab_id": 1, "action": {"action": "left_click", "ref": "ref_9"}}),
            reply("Could not find it."),
        ]
    )
    agent = make_agent(llm)

    agent.execute_task("Click the missing button")

    error_result = agent.messages[2].content[0]
    assert error_result.is_error is True
    assert error_result.content == "Error: Element with ref ref_9 not found"
    assert agent.state.error_count == 1


def test_success_resets_the_failure_streak() -> None:
    llm = ScriptedLLM(
        [
            tool_call("teleport", {}),
            tool_call("teleport", {}),
            tool_call("computer", SCREENSHOT),
            tool_call("teleport", {}),
            tool_call("teleport", {}),
            reply("Done anyway"),
        ]
    )
    agent = make_agent(llm)

    assert agent.execute_task("Flaky") == "Done anyway"
    assert agent.state.outcome is TaskOutcome.COMPLETED
    assert agent.state.error_count == 2


def test_model_errors_propagate() -> None:
    agent = make_agent(FailingLLM())

    with pytest.raises(httpx.ConnectError):
        agent.execute_task("Anything")

    assert agent.action_history == []


def test_state_tracks_tabs() -> None:
    llm = ScriptedLLM([tool_call("tabs_create", {"url": "example.com"}), reply("Opened")])
    agent = make_agent(llm)

    agent.execute_task("Open a tab")

    assert agent.state.current_tab_id == 2
    assert agent.state.tabs[2].url == "https://example.com"


def test_context_manager_starts_and_stops_browser() -> None:
    context = FakeContext([FakePage()])
    browser = PlaywrightBrowserSession(context=context)
    config = RunnerConfig()
    agent = BrowserAgent(config=config, llm=ScriptedLLM([reply("ok")]), browser=browser)

    with agent:
        assert agent.execute_task("Say ok") == "ok"
        assert [tab.id for tab in browser.get_tabs_context()] == [1]

    with pytest.raises(Exception, match="not initialized"):
        browser.get_tabs_context()


def test_action_history_keeps_its_own_copy_of_nested_input() -> None:
    actions = [{"action": "key", "text": "ctrl+a"}, {"action": "wait", "duration": 0}]
    llm = ScriptedLLM(
        [tool_call("computer", {"tab_id": 1, "actions": actions}), reply("Done")]
    )
    agent = make_agent(llm)

    agent.execute_task("Select everything")
    agent.messages[1].content[0].input["actions"].append({"action": "screenshot"})
    agent.messages[1].content[0].input["actions"][0]["text"] = "Escape"

    recorded = agent.action_history[0].input["actions"]
    assert recorded == [{"action": "key", "text": "ctrl+a"}, {"action": "wait", "duration": 0}]
