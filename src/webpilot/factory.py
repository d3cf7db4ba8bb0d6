"""Factories for constructing components from configuration."""

from __future__ import annotations

from .browser.playwright_session import PlaywrightBrowserSession
from .config import LLMConfig, NotificationConfig, RunnerConfig
from .llm.anthropic_client import AnthropicMessagesLLM
from .llm.base import LLMClient
from .llm.mock import ScriptedLLM
from .models import ModelResponse
from .notifications.base import ConsoleNotifier, Notifier


def build_llm(config: LLMConfig) -> LLMClient:
    provider = config.provider.lower()
    if provider == "anthropic":
        return AnthropicMessagesLLM(config)
    if provider == "mock":
        responses = [
            ModelResponse.model_validate(item)
            for item in config.parameters.get("responses", [])
        ]
        return ScriptedLLM(responses)
    raise ValueError(f"Unsupported LLM provider: {config.provider}")


def build_browser(config: RunnerConfig) -> PlaywrightBrowserSession:
    return PlaywrightBrowserSession(
        config.browser,
        screenshot_quality=config.agent.screenshot_quality,
    )


def build_notifier(config: NotificationConfig) -> Notifier:
    channel = config.channel.lower()
    if channel == "console":
        return ConsoleNotifier()
    raise ValueError(f"Unsupported notification channel: {config.channel}")
