"""Prompt construction and tool-result formatting."""

from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from textwrap import dedent
from typing import Any

from pydantic import BaseModel

from ..models import (
    ImageBlock,
    ImageSource,
    Message,
    Screenshot,
    TextBlock,
    ToolResultBlock,
)

SYSTEM_PROMPT = dedent(
    """
    You are a web automation agent with multimodal capabilities. You can see
    screenshots, read the page structure, and execute precise actions in a browser.

    ## CRITICAL RULES
    1. Always observe (screenshot/read_page) before acting
    2. Wait 2-3 seconds after navigation for JavaScript to load
    3. Batch independent actions in single tool calls
    4. Click the center of elements using coordinates from screenshots or find
    5. Always click input fields before typing
    6. Use explicit waits for async operations
    7. Verify critical actions with post-action screenshots
    8. Handle errors by retrying with an adjusted approach

    ## AVAILABLE TOOLS

    ### Perception
    - computer (action "screenshot"): capture the viewport
    - read_page: element tree where every line starts with a [ref_N] id
      - use depth=5-8 for complex pages to save tokens
      - use filter="interactive" when only looking for buttons and inputs
    - find: search elements by text or attributes (max 20, with center coordinates)
    - get_page_text: raw text content of the page

    ### Actions
    - computer: left_click, right_click, double_click, type, key, wait, scroll,
      left_click_drag, scroll_to
      - clicks take coordinate [x, y] or ref (one of them)
      - type and key take text; key shortcuts: "Return", "Tab", "Escape", "cmd+a", "ctrl+c"
    - form_input: set a form field value by ref
    - navigate: go to a URL, or "back"/"forward"
    - tabs_create: open a new tab (remember the returned tab_id)
    - tabs_context: list all tabs

    Every tool except tabs_create and tabs_context needs a tab_id. The first tab is 1.
    Ref ids stay valid for an element until it leaves the page.

    ## EXECUTION PATTERN
    1. OBSERVE: take a screenshot or read_page to understand the current state
    2. REASON: decide which elements matter and where they are
    3. ACT: execute actions, batching independent ones:
       {"tab_id": 1, "actions": [
         {"action": "left_click", "coordinate": [379, 321]},
         {"action": "type", "text": "Hello world"},
         {"action": "key", "text": "Return"}
       ]}
    4. VERIFY: confirm success with a screenshot
    5. REPEAT until the task is complete

    ## ERROR RECOVERY
    - Failed click: adjust coordinates to the center of the element
    - Element not found: scroll, wait longer, or use find
    - Page not loaded: add an explicit wait of 2-3 seconds
    - Dynamic content: scroll and wait to trigger lazy loading
    - Wrong state: take a screenshot, reassess, restart from observation

    Before each action, briefly explain what you observe, what you are doing and
    what you expect. When the task is complete, reply with a summary of what was
    accomplished and do not call any more tools.
    """
).strip()


class PromptBuilder:
    """Build conversation messages for the agent loop."""

    def __init__(self, system_prompt: str = SYSTEM_PROMPT) -> None:
        self._system_prompt = system_prompt

    def system_prompt(self) -> str:
        return self._system_prompt

    @staticmethod
    def task_message(task: str) -> Message:
        return Message(role="user", content=task)

    @staticmethod
    def tool_result(tool_use_id: str, output: Any) -> ToolResultBlock:
        """Convert a tool output into a tool-result block."""

        if isinstance(output, Screenshot):
            return ToolResultBlock(
                tool_use_id=tool_use_id,
                content=[
                    screenshot_block(output),
                    TextBlock(text=f"Screenshot captured at {_format_timestamp(output.timestamp)}"),
                ],
            )
        return ToolResultBlock(tool_use_id=tool_use_id, content=render_output(output))

    @staticmethod
    def tool_error(tool_use_id: str, error: str) -> ToolResultBlock:
        return ToolResultBlock(tool_use_id=tool_use_id, content=f"Error: {error}", is_error=True)


def screenshot_block(screenshot: Screenshot) -> ImageBlock:
    return ImageBlock(
        source=ImageSource(
            media_type=screenshot.media_type,
            data=base64.b64encode(screenshot.image).decode("ascii"),
        )
    )


def render_output(output: Any) -> str:
    """Render a non-image tool output as text."""

    if output is None:
        return "OK"
    if isinstance(output, str):
        return output
    if isinstance(output, BaseModel):
        return output.model_dump_json(indent=2)
    return json.dumps(output, indent=2, default=str)


def _format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
