"""Agent loop that drives the model through perceive-act turns."""

from __future__ import annotations

import copy
import enum
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from ..browser.base import BrowserActionError, BrowserSession
from ..config import RunnerConfig
from ..llm.base import LLMClient
from ..models import (
    Message,
    NotificationEvent,
    NotificationLevel,
    Screenshot,
    StopReason,
    Tab,
    TabsContextResult,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from ..notifications.base import Notifier
from ..tools.definitions import TOOL_DEFINITIONS
from ..tools.dispatcher import ToolDispatcher, UnknownToolError
from .prompt_builder import PromptBuilder

LOGGER = logging.getLogger(__name__)

DEFAULT_FINAL_TEXT = "Task completed"

_EXPECTED_TOOL_ERRORS = (BrowserActionError, UnknownToolError, ValidationError)


class TaskOutcome(str, enum.Enum):
    """How a task ended."""

    COMPLETED = "completed"
    BUDGET_EXCEEDED = "budget_exceeded"
    RETRIES_EXCEEDED = "retries_exceeded"


@dataclass(frozen=True)
class ActionHistoryEntry:
    """Record of one dispatched tool call."""

    timestamp: datetime
    tool: str
    input: dict[str, Any]
    duration_ms: float
    output: Any = None
    error: Optional[str] = None


@dataclass
class AgentState:
    """Process-local state of one task execution."""

    max_retries: int
    current_tab_id: int = 1
    tabs: dict[int, Tab] = field(default_factory=dict)
    last_screenshot: Optional[Screenshot] = None
    action_history: list[ActionHistoryEntry] = field(default_factory=list)
    error_count: int = 0
    outcome: Optional[TaskOutcome] = None


class BrowserAgent:
    """Drive the model turn by turn until the task ends or a budget runs out.

    Tool failures are fed back to the model as error results. The task stops
    early only when ``max_retries`` tool calls fail back to back or when
    ``max_actions_per_task`` tool calls were dispatched. Errors raised by the
    model client propagate to the caller of :meth:`execute_task`.
    """

    def __init__(
        self,
        config: RunnerConfig,
        llm: LLMClient,
        browser: BrowserSession,
        dispatcher: Optional[ToolDispatcher] = None,
        notifier: Optional[Notifier] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ) -> None:
        self._config = config
        self._llm = llm
        self._browser = browser
        self._dispatcher = dispatcher or ToolDispatcher(
            browser,
            wait_after_navigation=config.agent.default_wait_after_navigation,
        )
        self._notifier = notifier
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._state = AgentState(max_retries=config.agent.max_retries)
        self._messages: list[Message] = []

    def __enter__(self) -> "BrowserAgent":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def initialize(self) -> None:
        self._browser.start()
        LOGGER.info("Browser agent initialized")

    def close(self) -> None:
        self._browser.stop()
        LOGGER.info("Browser agent closed")

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def action_history(self) -> list[ActionHistoryEntry]:
        return list(self._state.action_history)

    def execute_task(self, task: str) -> str:
        """Run ``task`` to completion and return the outcome text."""

        agent_config = self._config.agent
        max_actions = agent_config.max_actions_per_task
        self._state = AgentState(
            max_retries=agent_config.max_retries,
            current_tab_id=self._dispatcher.current_tab_id,
        )
        self._messages = [self._prompt_builder.task_message(task)]
        LOGGER.info("Starting task execution: %s", task)
        self._notify("task_started", f"Starting task: {task}")

        actions_executed = 0
        while actions_executed < max_actions:
            response = self._llm.chat(
                self._messages,
                TOOL_DEFINITIONS,
                self._prompt_builder.system_prompt(),
            )
            assistant_content: list[Any] = []
            tool_results: list[ToolResultBlock] = []
            final_text = ""

            for block in response.content:
                if isinstance(block, ToolUseBlock):
                    if actions_executed >= max_actions:
                        LOGGER.warning("Action budget reached; skipping remaining tool calls")
                        break
                    actions_executed += 1
                    assistant_content.append(block)
                    result, error = self._dispatch(block)
                    tool_results.append(result)
                    if error is not None and self._state.error_count >= self._state.max_retries:
                        LOGGER.error("Max retries exceeded: %s", error)
                        return self._finish(
                            TaskOutcome.RETRIES_EXCEEDED,
                            f"Task failed after {self._state.max_retries} retries: {error}",
                        )
                else:
                    assistant_content.append(block)
                    if isinstance(block, TextBlock):
                        final_text = block.text

            self._messages.append(Message(role="assistant", content=assistant_content))

            if not tool_results:
                if response.stop_reason != StopReason.END_TURN.value:
                    LOGGER.warning(
                        "Model stopped with %s and no tool calls; treating as final",
                        response.stop_reason,
                    )
                LOGGER.info("Task completed after %d actions", actions_executed)
                return self._finish(TaskOutcome.COMPLETED, final_text or DEFAULT_FINAL_TEXT)

            self._messages.append(Message(role="user", content=tool_results))

        LOGGER.warning("Action budget of %d exhausted", max_actions)
        return self._finish(
            TaskOutcome.BUDGET_EXCEEDED,
            f"Task terminated after {max_actions} actions",
        )

    def _dispatch(self, block: ToolUseBlock) -> tuple[ToolResultBlock, Optional[str]]:
        started = time.monotonic()
        try:
            output = self._dispatcher.execute(block.name, block.input)
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            self._state.error_count += 1
            self._record(block, started, error=error)
            if isinstance(exc, _EXPECTED_TOOL_ERRORS):
                LOGGER.warning(
                    "Tool %s failed (%d/%d consecutive): %s",
                    block.name,
                    self._state.error_count,
                    self._state.max_retries,
                    error,
                )
            else:
                LOGGER.exception("Unexpected error while running tool %s", block.name)
            self._notify(
                "tool_failed",
                f"{block.name} failed: {error}",
                level=NotificationLevel.WARNING,
            )
            return self._prompt_builder.tool_error(block.id, error), error

        self._state.error_count = 0
        self._observe(output)
        self._record(block, started, output=output)
        return self._prompt_builder.tool_result(block.id, output), None

    def _observe(self, output: Any) -> None:
        if isinstance(output, Screenshot):
            self._state.last_screenshot = output
        elif isinstance(output, Tab):
            self._state.tabs[output.id] = output
        elif isinstance(output, TabsContextResult):
            self._state.tabs.update({tab.id: tab for tab in output.tabs})
        self._state.current_tab_id = self._dispatcher.current_tab_id

    def _record(
        self,
        block: ToolUseBlock,
        started: float,
        *,
        output: Any = None,
        error: Optional[str] = None,
    ) -> None:
        self._state.action_history.append(
            ActionHistoryEntry(
                timestamp=datetime.now(timezone.utc),
                tool=block.name,
                input=copy.deepcopy(block.input),
                duration_ms=(time.monotonic() - started) * 1000,
                output=output,
                error=error,
            )
        )

    def _finish(self, outcome: TaskOutcome, message: str) -> str:
        self._state.outcome = outcome
        if outcome is TaskOutcome.COMPLETED:
            self._notify("task_finished", message, level=NotificationLevel.SUCCESS)
        else:
            self._notify("task_failed", message, level=NotificationLevel.ERROR)
        return message

    def _notify(
        self,
        event_type: str,
        message: str,
        *,
        level: NotificationLevel = NotificationLevel.INFO,
    ) -> None:
        if self._notifier is None:
            return
        self._notifier.notify(NotificationEvent(type=event_type, message=message, level=level))
