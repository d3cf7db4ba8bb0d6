from pathlib import Path

import pytest
from pydantic import ValidationError

from webpilot.config import RunnerConfig, load_config


def test_defaults() -> None:
    config = RunnerConfig()

    assert config.task is None
    assert config.llm.provider == "anthropic"
    assert config.llm.max_tokens == 4096
    assert config.llm.temperature == 0.0
    assert (config.browser.viewport_width, config.browser.viewport_height) == (1280, 720)
    assert config.browser.navigation_timeout == 30.0
    assert config.agent.max_actions_per_task == 50
    assert config.agent.max_retries == 3


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "WEBPILOT_TASK__DESCRIPTION=Task from env",
                "WEBPILOT_TASK__GOAL=Goal from env",
                "WEBPILOT_LLM__PROVIDER=mock",
                "WEBPILOT_AGENT__MAX_ACTIONS_PER_TASK=10",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.task.description == "Task from env"
    assert config.task.goal == "Goal from env"
    assert config.llm.provider == "mock"
    assert config.agent.max_actions_per_task == 10


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "WEBPILOT_TASK__DESCRIPTION=Env description",
                "WEBPILOT_TASK__GOAL=Env goal",
                "WEBPILOT_LLM__PROVIDER=mock",
            ]
        )
    )

    config_path = tmp_path / "task.yaml"
    config_path.write_text(
        "\n".join(
            [
                "task:",
                "  description: File description",
                "browser:",
                "  headless: true",
            ]
        )
    )

    config = load_config(config_path, env_file=env_path, task={"goal": "Override goal"})

    assert config.task.description == "File description"
    assert config.task.goal == "Override goal"
    assert config.llm.provider == "mock"
    assert config.browser.headless is True


def test_invalid_budget_is_rejected() -> None:
    with pytest.raises(ValidationError):
        load_config(agent={"max_actions_per_task": 0})


def test_config_is_frozen() -> None:
    config = RunnerConfig()

    with pytest.raises(ValidationError):
        config.agent.max_retries = 5
