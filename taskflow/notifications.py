"""Notification sinks for ``send-notification`` automation actions.

The store never observes whether a notification was delivered.
"""

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger()


class Notifier(ABC):
    """Receives plain-text messages from automations."""

    @abstractmethod
    def notify(self, message: str) -> None:
        """Deliver a message."""
        pass


class LogNotifier(Notifier):
    """Writes notifications to the structured log."""

    def notify(self, message: str) -> None:
        logger.info("Notification", message=message)


class PrintNotifier(Notifier):
    """Prints notifications to stdout; used by the CLI."""

    def notify(self, message: str) -> None:
        print(f"[notification] {message}")
