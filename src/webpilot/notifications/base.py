"""Notification channels for agent lifecycle events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from rich.console import Console

from ..models import NotificationEvent, NotificationLevel

_LEVEL_STYLES = {
    NotificationLevel.INFO: "cyan",
    NotificationLevel.WARNING: "yellow",
    NotificationLevel.ERROR: "bold red",
    NotificationLevel.SUCCESS: "green",
}


class Notifier(ABC):
    """Interface for sending notifications about agent events."""

    @abstractmethod
    def notify(self, event: NotificationEvent) -> None:
        """Send a notification event."""


class ConsoleNotifier(Notifier):
    """Print events to the terminal using Rich."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console(stderr=True)

    def notify(self, event: NotificationEvent) -> None:
        style = _LEVEL_STYLES.get(event.level, "white")
        stamp = event.timestamp.strftime("%H:%M:%S")
        self._console.print(
            f"{stamp} [{event.level.value.upper()}] {event.type}: {event.message}",
            style=style,
            markup=False,
            highlight=False,
        )
        if event.data:
            self._console.print(event.data, style="dim")


class CompositeNotifier(Notifier):
    """Fan-out notifier that propagates events to multiple notifiers."""

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self._notifiers = list(notifiers)

    def notify(self, event: NotificationEvent) -> None:
        for notifier in self._notifiers:
            notifier.notify(event)
