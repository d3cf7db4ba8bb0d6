"""Tool schema presented to the model.

The names and input schemas here must stay in lockstep with the dispatch table
in :mod:`webpilot.tools.dispatcher` and with the system prompt.
"""

from __future__ import annotations

from typing import Any

ACTION_TYPES = [
    "screenshot",
    "left_click",
    "right_click",
    "double_click",
    "type",
    "key",
    "wait",
    "scroll",
    "left_click_drag",
    "scroll_to",
]

_COORDINATE = {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 2}

_ACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "action": {"type": "string", "enum": ACTION_TYPES},
        "coordinate": {**_COORDINATE, "description": "[x, y] viewport point"},
        "ref": {"type": "string", "description": "Element ref id from read_page or find"},
        "text": {"type": "string", "description": "Text to type, or key name for 'key'"},
        "duration": {"type": "number", "description": "Seconds to wait (max 30)"},
        "scroll_parameters": {
            "type": "object",
            "properties": {
                "scroll_direction": {"type": "string", "enum": ["up", "down", "left", "right"]},
                "scroll_amount": {
                    "type": ["string", "number"],
                    "description": "Number of scroll units or \"max\"",
                },
            },
            "required": ["scroll_direction"],
        },
        "start_coordinate": _COORDINATE,
        "end_coordinate": _COORDINATE,
    },
    "required": ["action"],
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "computer",
        "description": (
            "Execute low-level computer actions like clicks, typing, scrolling. "
            "Pass one 'action' or a list of 'actions' executed in order. "
            "Returns a screenshot after execution."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "tab_id": {"type": "number", "description": "Tab ID to execute actions on"},
                "action": {**_ACTION_SCHEMA, "description": "Single action to execute"},
                "actions": {
                    "type": "array",
                    "description": "Multiple actions to execute in sequence",
                    "items": _ACTION_SCHEMA,
                },
            },
            "required": ["tab_id"],
        },
    },
    {
        "name": "read_page",
        "description": (
            "Read the accessibility tree of the page. Returns hierarchical text where "
            "each element is prefixed with its [ref_N] id."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "tab_id": {"type": "number", "description": "Tab ID"},
                "depth": {
                    "type": "number",
                    "description": "Max depth to traverse (default 15, use 5-8 for complex pages)",
                },
                "filter": {
                    "type": "string",
                    "enum": ["interactive", "all"],
                    "description": "Filter element types",
                },
                "ref_id": {"type": "string", "description": "Focus on a specific subtree"},
            },
            "required": ["tab_id"],
        },
    },
    {
        "name": "find",
        "description": (
            "Find elements by text, label, placeholder, title, id or class. "
            "Returns max 20 elements with ref_ids and center coordinates."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to look for"},
                "tab_id": {"type": "number", "description": "Tab ID"},
            },
            "required": ["query", "tab_id"],
        },
    },
    {
        "name": "get_page_text",
        "description": "Extract raw text content from page, prioritizing article content.",
        "input_schema": {
            "type": "object",
            "properties": {"tab_id": {"type": "number", "description": "Tab ID"}},
            "required": ["tab_id"],
        },
    },
    {
        "name": "form_input",
        "description": "Set value on form element by ref_id. Handles text inputs, checkboxes, selects.",
        "input_schema": {
            "type": "object",
            "properties": {
                "ref": {"type": "string", "description": "Element ref_id from read_page or find"},
                "value": {
                    "type": ["string", "boolean", "number"],
                    "description": "Value to set",
                },
                "tab_id": {"type": "number", "description": "Tab ID"},
            },
            "required": ["ref", "value", "tab_id"],
        },
    },
    {
        "name": "navigate",
        "description": "Navigate to URL or use \"back\"/\"forward\" for history navigation.",
        "input_schema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL to navigate to, or \"back\"/\"forward\""},
                "tab_id": {"type": "number", "description": "Tab ID"},
            },
            "required": ["url", "tab_id"],
        },
    },
    {
        "name": "tabs_create",
        "description": "Create a new browser tab. Returns the new tab and its tab_id.",
        "input_schema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "Optional URL to open in new tab"},
            },
        },
    },
    {
        "name": "tabs_context",
        "description": "Get information about all open tabs.",
        "input_schema": {"type": "object", "properties": {}},
    },
]

TOOL_NAMES = frozenset(definition["name"] for definition in TOOL_DEFINITIONS)
