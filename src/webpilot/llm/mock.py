"""Mock model clients for testing and offline use."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Iterable, Sequence

from ..models import Message, ModelResponse
from .base import LLMClient


@dataclass
class RecordedCall:
    """Arguments of one ``chat`` invocation."""

    messages: list[Message]
    tools: list[dict[str, Any]]
    system_prompt: str


class ScriptedLLM(LLMClient):
    """Return responses from a predefined sequence."""

    def __init__(self, responses: Iterable[ModelResponse]) -> None:
        self._responses: Deque[ModelResponse] = deque(responses)
        self.calls: list[RecordedCall] = []

    def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[dict[str, Any]],
        system_prompt: str,
    ) -> ModelResponse:
        self.calls.append(RecordedCall(list(messages), list(tools), system_prompt))
        if not self._responses:
            raise RuntimeError("ScriptedLLM ran out of responses")
        return self._responses.popleft()
