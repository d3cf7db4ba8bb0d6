"""Expand a terse task into a detailed, step-by-step instruction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from textwrap import dedent
from typing import Optional

from ..llm.base import LLMClient
from ..models import Message, TextBlock

LOGGER = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = "You are a helpful task planning assistant."

PLANNER_PROMPT = dedent(
    """
    You are a task planning assistant for a web automation agent. Given a user's
    task, generate detailed step-by-step instructions that the agent should follow.

    Your steps should be:
    1. Specific and actionable
    2. Include wait times for page loads (especially for single page apps)
    3. Include verification steps (screenshots to confirm success)
    4. Handle likely edge cases (login pages, popups, cookie banners)
    5. Use the agent's tool vocabulary: screenshot, navigate, wait, click, type,
       find, read_page, get_page_text

    Format the response as a numbered list. Each step says what to do, what to
    look for, how long to wait if needed, and what to do if something goes wrong.

    Example for "Search for TypeScript on Google":
    1. Take a screenshot to observe the current browser state
    2. Navigate to https://google.com
    3. Wait 2 seconds for the page to fully load
    4. Take a screenshot to verify the homepage loaded
    5. Find the search input (textarea or input labelled "Search")
    6. Click the search input to focus it
    7. Type "TypeScript"
    8. Press Enter to submit
    9. Wait 2-3 seconds for results
    10. Take a screenshot to verify results appeared
    11. Report success with the page title, or check for CAPTCHAs and errors

    Now generate detailed steps for the following task:
    """
).strip()

GUIDELINES = dedent(
    """
    Important Guidelines:
    - Always take a screenshot before any action to understand the current state
    - Wait 2-3 seconds after navigation for single page apps to fully load
    - Click the center of elements, not edges
    - If you encounter a login page, stop and report that authentication is required
    - If an element is not found, try scrolling or waiting longer
    - Verify each major action with a screenshot before proceeding
    """
).strip()


@dataclass
class TaskContext:
    """Optional facts about the starting point and limits of a task."""

    current_url: Optional[str] = None
    browser_state: str = "unknown"
    previous_actions: list[str] = field(default_factory=list)
    max_actions: int = 20
    timeout_seconds: int = 120
    success_criteria: Optional[str] = None


class TaskPlanner:
    """Ask the model, without tools, for a numbered plan."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    def generate_plan(self, task: str) -> str:
        LOGGER.info("Generating plan for task: %s", task)
        response = self._llm.chat(
            [Message(role="user", content=f'{PLANNER_PROMPT}\n\nTask: "{task}"')],
            [],
            PLANNER_SYSTEM_PROMPT,
        )
        plan = next(
            (block.text for block in response.content if isinstance(block, TextBlock)),
            "",
        )
        LOGGER.info("Plan generated (%d characters)", len(plan))
        return plan

    def create_detailed_task(self, task: str, context: Optional[TaskContext] = None) -> str:
        """Combine the task, its context and a generated plan into one instruction."""

        plan = self.generate_plan(task)
        context = context or TaskContext()
        sections = [f"TASK: {task}"]
        if context.current_url or context.previous_actions or context.browser_state != "unknown":
            sections.append(
                "CONTEXT:\n"
                f"- Current URL: {context.current_url or 'New browser tab'}\n"
                f"- Browser State: {context.browser_state}\n"
                f"- Previous Actions: {', '.join(context.previous_actions) or 'None'}"
            )
        sections.append(
            "CONSTRAINTS:\n"
            f"- Maximum {context.max_actions} actions\n"
            f"- Must complete in under {max(1, context.timeout_seconds // 60)} minutes\n"
            "- Verify final state with screenshot"
        )
        if context.success_criteria:
            sections.append(f"SUCCESS CRITERIA:\n{context.success_criteria}")
        sections.append(f"Detailed Steps to Follow:\n{plan}")
        sections.append(GUIDELINES)
        return "\n\n".join(sections)
