"""Pluggable notification protocol for kanata_status.

Lets the coordinator report connection changes without knowing how the host
shows them. Replace with a custom handler for testing or UI integration.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class StatusNotifier(Protocol):
    """Protocol for user-facing notifications - host can provide its own."""

    def info(self, message: str) -> None:
        """Informational message."""
        ...

    def warning(self, message: str) -> None:
        """Warning message."""
        ...

    def error(self, message: str) -> None:
        """Error message."""
        ...


class NoOpNotifier:
    """Silent notifier - default when embedded without a place to show messages."""

    def info(self, msg: str) -> None:
        pass

    def warning(self, msg: str) -> None:
        pass

    def error(self, msg: str) -> None:
        pass


class LoggingNotifier:
    """Forwards notifications to logging - used by headless mode."""

    def info(self, msg: str) -> None:
        logger.info(msg)

    def warning(self, msg: str) -> None:
        logger.warning(msg)

    def error(self, msg: str) -> None:
        logger.error(msg)
