"""Configuration models for webpilot."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseModel):
    """Settings for the model service."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default="anthropic")
    model: str = "claude-sonnet-4-5-20250929"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_tokens: int = 4096
    temperature: float = 0.0
    timeout: float = Field(default=120.0, description="HTTP timeout (seconds) for one model call.")
    parameters: dict[str, Any] = Field(default_factory=dict)


class BrowserConfig(BaseModel):
    """Settings for the browser backend."""

    model_config = ConfigDict(frozen=True)

    profile_path: Optional[Path] = None
    headless: bool = False
    viewport_width: int = 1280
    viewport_height: int = 720
    navigation_timeout: float = Field(default=30.0, description="Navigation timeout in seconds.")
    show_cursor: bool = False
    screenshot_format: Literal["png", "jpeg"] = "png"


class AgentConfig(BaseModel):
    """Budgets and pacing for the agent loop."""

    model_config = ConfigDict(frozen=True)

    max_actions_per_task: int = Field(default=50, ge=1)
    max_retries: int = Field(default=3, ge=1)
    default_wait_after_navigation: float = Field(
        default=2.0,
        description="Seconds to wait after the navigate tool before the screenshot.",
    )
    screenshot_quality: int = Field(default=80, ge=0, le=100)


class NotificationConfig(BaseModel):
    """Notification channel settings."""

    model_config = ConfigDict(frozen=True)

    channel: str = Field(default="console")


class TaskConfig(BaseModel):
    """Task definition provided by the user."""

    model_config = ConfigDict(frozen=True)

    description: str
    goal: Optional[str] = None


class RunnerConfig(BaseSettings):
    """Top-level configuration for running the agent."""

    model_config = SettingsConfigDict(
        env_prefix="WEBPILOT_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        frozen=True,
    )

    task: Optional[TaskConfig] = None
    llm: LLMConfig = Field(default_factory=LLMConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> RunnerConfig:
    """Load configuration from an optional YAML file, the environment and overrides.

    Overrides win over the file, and the file wins over environment values.
    """

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = RunnerConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return RunnerConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value
