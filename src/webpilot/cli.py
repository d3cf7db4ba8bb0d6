"""Command line interface for webpilot."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from .config import load_config
from .factory import build_browser, build_llm, build_notifier
from .orchestrator.planner import TaskContext, TaskPlanner
from .orchestrator.runner import BrowserAgent, TaskOutcome

app = typer.Typer(help="webpilot: run browser tasks with a multimodal model")


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("webpilot"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def run(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with default configuration values."),
    ] = None,
    task: Annotated[
        Optional[str],
        typer.Option("--task", help="Task description (overrides the configuration)."),
    ] = None,
    goal: Annotated[
        Optional[str],
        typer.Option("--goal", help="Success criteria for the task."),
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("--model", help="Model identifier."),
    ] = None,
    api_key: Annotated[
        Optional[str],
        typer.Option("--api-key", help="API key for the model service."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    max_actions: Annotated[
        Optional[int],
        typer.Option("--max-actions", help="Maximum tool calls for the task."),
    ] = None,
    plan: Annotated[
        bool,
        typer.Option("--plan/--no-plan", help="Expand the task into a step-by-step plan first."),
    ] = False,
) -> None:
    """Run one browser task and print its outcome."""

    overrides: dict[str, Any] = {}
    if task or goal:
        overrides.setdefault("task", {})
        if task:
            overrides["task"]["description"] = task
        if goal:
            overrides["task"]["goal"] = goal
    if model or api_key:
        overrides.setdefault("llm", {})
        if model:
            overrides["llm"]["model"] = model
        if api_key:
            overrides["llm"]["api_key"] = api_key
    if headless is not None:
        overrides["browser"] = {"headless": headless}
    if max_actions is not None:
        overrides["agent"] = {"max_actions_per_task": max_actions}

    config = load_config(config_path, env_file=env_file, **overrides)
    if config.task is None:
        typer.echo("No task given; pass --task or set task.description in the configuration.", err=True)
        raise typer.Exit(code=2)
    typer.echo(f"Loaded configuration for task: {config.task.description}")

    llm = build_llm(config.llm)
    browser = build_browser(config)
    notifier = build_notifier(config.notifications)

    instruction = config.task.description
    if plan:
        context = TaskContext(
            max_actions=config.agent.max_actions_per_task,
            success_criteria=config.task.goal,
        )
        instruction = TaskPlanner(llm).create_detailed_task(instruction, context)
    elif config.task.goal:
        instruction = f"{instruction}\n\nSuccess criteria: {config.task.goal}"

    agent = BrowserAgent(config=config, llm=llm, browser=browser, notifier=notifier)
    with agent:
        result = agent.execute_task(instruction)
    typer.echo(result)
    if agent.state.outcome is not TaskOutcome.COMPLETED:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
