"""Base classes for model-service integrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..models import Message, ModelResponse


class LLMClient(ABC):
    """Abstract interface for model providers."""

    @abstractmethod
    def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[dict[str, Any]],
        system_prompt: str,
    ) -> ModelResponse:
        """Send the conversation and return the model's next response.

        Transport and authentication failures are raised to the caller; they are
        never converted into a response.
        """
