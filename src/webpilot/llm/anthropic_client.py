"""Client for the Anthropic Messages API."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from pydantic import TypeAdapter

from ..config import LLMConfig
from ..models import ContentBlock, Message, ModelResponse, Usage
from .base import LLMClient

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"

_BLOCK_ADAPTER: TypeAdapter[ContentBlock] = TypeAdapter(ContentBlock)
_SUPPORTED_BLOCKS = {"text", "tool_use"}
_RESERVED_PARAMETERS = {"model", "messages", "tools", "system", "max_tokens", "temperature"}


class AnthropicMessagesLLM(LLMClient):
    """Call the Messages endpoint with tool definitions and a system prompt."""

    def __init__(self, config: LLMConfig, *, client: httpx.Client | None = None) -> None:
        if not config.model:
            raise ValueError("LLM model must be specified for AnthropicMessagesLLM")
        self._config = config
        headers = {
            "Content-Type": "application/json",
            "anthropic-version": config.parameters.get("api_version", API_VERSION),
        }
        if config.api_key:
            headers["x-api-key"] = config.api_key
        self._client = client or httpx.Client(
            base_url=config.base_url or DEFAULT_BASE_URL,
            timeout=config.timeout,
            headers=headers,
        )

    def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[dict[str, Any]],
        system_prompt: str,
    ) -> ModelResponse:
        payload: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
            "system": system_prompt,
            "messages": [message.model_dump(mode="json", exclude_none=True) for message in messages],
        }
        if tools:
            payload["tools"] = list(tools)
        payload.update(
            {
                key: value
                for key, value in self._config.parameters.items()
                if key not in _RESERVED_PARAMETERS and key != "api_version"
            }
        )
        LOGGER.debug("Sending %d messages and %d tools to the model", len(messages), len(tools))
        response = self._client.post("/v1/messages", json=payload)
        response.raise_for_status()
        return parse_response(response.json())

    def close(self) -> None:
        self._client.close()


def parse_response(data: dict[str, Any]) -> ModelResponse:
    """Convert a Messages API payload into a :class:`ModelResponse`."""

    try:
        raw_blocks = data["content"]
    except KeyError as exc:
        raise ValueError(f"Unexpected response format: {data}") from exc
    blocks = []
    for raw in raw_blocks:
        if raw.get("type") not in _SUPPORTED_BLOCKS:
            LOGGER.debug("Skipping unsupported content block %s", raw.get("type"))
            continue
        blocks.append(_BLOCK_ADAPTER.validate_python(raw))
    usage = data.get("usage") or {}
    response = ModelResponse(
        content=blocks,
        stop_reason=data.get("stop_reason") or "end_turn",
        usage=Usage(
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        ),
    )
    LOGGER.debug(
        "Model replied with %d blocks (stop_reason=%s)",
        len(response.content),
        response.stop_reason,
    )
    return response
