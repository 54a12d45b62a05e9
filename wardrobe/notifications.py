"""
User-facing notifications (toasts) for catalog operations.

Catalog loaders report success and failure through a Notifier instead of
raising. The console implementation renders them with rich.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from rich.console import Console

console = Console()

Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Notification:
    """A single toast: title, description and severity."""

    title: str
    description: str = ""
    variant: Variant = "default"


class Notifier(ABC):
    """Fire-and-forget notification channel."""

    def notify(
        self, title: str, description: str = "", variant: Variant = "default"
    ) -> None:
        try:
            self.deliver(Notification(title, description, variant))
        except Exception as e:
            console.print(f"[yellow]Warning: notification dropped: {e}[/yellow]")

    @abstractmethod
    def deliver(self, notification: Notification) -> None:
        """Show or record one notification."""


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal."""

    def __init__(self, output: Console = None):
        self.console = output or console

    def deliver(self, notification: Notification) -> None:
        style = "red" if notification.variant == "destructive" else "green"
        line = f"[bold {style}]{notification.title}[/bold {style}]"
        if notification.description:
            line += f" [dim]{notification.description}[/dim]"
        self.console.print(line)
