import io

import pytest
from rich.console import Console

from webpilot.browser.playwright_session import PlaywrightBrowserSession
from webpilot.config import LLMConfig, NotificationConfig, RunnerConfig
from webpilot.factory import build_browser, build_llm, build_notifier
from webpilot.llm.anthropic_client import AnthropicMessagesLLM
from webpilot.llm.mock import ScriptedLLM
from webpilot.models import Message, NotificationEvent, NotificationLevel
from webpilot.notifications.base import CompositeNotifier, ConsoleNotifier
from webpilot.orchestrator.prompt_builder import PromptBuilder, render_output


def test_build_mock_llm_replays_responses() -> None:
    llm = build_llm(
        LLMConfig(
            provider="mock",
            parameters={"responses": [{"content": [{"type": "text", "text": "done"}]}]},
        )
    )

    assert isinstance(llm, ScriptedLLM)
    response = llm.chat([Message(role="user", content="go")], [], "system")
    assert response.content[0].text == "done"


def test_build_anthropic_llm() -> None:
    llm = build_llm(LLMConfig(api_key="key"))

    assert isinstance(llm, AnthropicMessagesLLM)
    llm.close()


def test_unknown_providers_are_rejected() -> None:
    with pytest.raises(ValueError):
        build_llm(LLMConfig(provider="carrier-pigeon"))
    with pytest.raises(ValueError):
        build_notifier(NotificationConfig(channel="fax"))


def test_build_browser_does_not_launch() -> None:
    browser = build_browser(RunnerConfig.model_validate({"browser": {"headless": True}}))

    assert isinstance(browser, PlaywrightBrowserSession)


def test_console_notifier_prints_events() -> None:
    buffer = io.StringIO()
    notifier = ConsoleNotifier(Console(file=buffer, width=200))

    CompositeNotifier([notifier]).notify(
        NotificationEvent(type="task_failed", message="[boom]", level=NotificationLevel.ERROR)
    )

    assert "[ERROR] task_failed: [boom]" in buffer.getvalue()


def test_render_output() -> None:
    assert render_output(None) == "OK"
    assert render_output("text") == "text"
    assert render_output({"a": 1}) == '{\n  "a": 1\n}'


def test_tool_error_block() -> None:
    block = PromptBuilder.tool_error("call_9", "boom")

    assert block.content == "Error: boom"
    assert block.is_error is True
