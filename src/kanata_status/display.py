"""Display protocol the core pushes indicator updates to.

Any frontend (Textual widget, headless logger, test double) implements
DisplayPort to receive layer updates.
"""

import logging
from typing import Protocol

from kanata_status.models import IndicatorState

logger = logging.getLogger(__name__)


class DisplayPort(Protocol):
    """Abstract indicator the host UI provides."""

    def set_layer(self, text: str) -> None:
        """Set the indicator text."""
        ...

    def set_visible(self, visible: bool) -> None:
        """Show or hide the indicator."""
        ...

    def destroy(self) -> None:
        """Release the indicator. Called once on teardown."""
        ...


class NullDisplay:
    """Tracks indicator state without rendering it. Default for embedded mode."""

    def __init__(self):
        self.state = IndicatorState()
        self.destroyed = False

    def set_layer(self, text: str) -> None:
        self.state.text = text

    def set_visible(self, visible: bool) -> None:
        self.state.visible = visible

    def destroy(self) -> None:
        self.destroyed = True


class LoggingDisplay(NullDisplay):
    """Headless display: logs each layer the indicator would show."""

    def set_visible(self, visible: bool) -> None:
        if visible != self.state.visible:
            logger.info(f"Layer: {self.state.text}" if visible else "Indicator hidden")
        super().set_visible(visible)

    def set_layer(self, text: str) -> None:
        changed = text != self.state.text
        super().set_layer(text)
        if changed and self.state.visible:
            logger.info(f"Layer: {text}")
