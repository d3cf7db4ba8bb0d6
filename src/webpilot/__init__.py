"""Drive a multimodal model through browser tasks with a perceive-act loop."""

from .config import RunnerConfig, load_config
from .orchestrator.runner import BrowserAgent, TaskOutcome

__all__ = ["BrowserAgent", "RunnerConfig", "TaskOutcome", "load_config"]
