"""
User-facing notifications: short, fire-and-forget messages.
"""

import logging
from typing import Protocol

from rich.console import Console


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class ConsoleNotifier:
    """Print notifications on the rich console."""

    def __init__(self, console: Console):
        self.console = console

    def notify(self, message: str) -> None:
        self.console.print(f"[bold cyan]›[/] {message}")


class LogNotifier:
    """Send notifications to the log, for unattended runs."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    def notify(self, message: str) -> None:
        self.logger.info(message)
