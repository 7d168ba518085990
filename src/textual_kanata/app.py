"""TUI application for textual-kanata.

A single centered LayerIndicator driven by KanataStatusController. Connection
changes surface as toasts.
"""

import asyncio
import logging
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Middle
from textual.widgets import Footer, Header

from kanata_status.config import StatusConfig
from kanata_status.models import CoordinatorState
from textual_kanata.controller import KanataStatusController
from textual_kanata.widgets import LayerIndicator

logger = logging.getLogger(__name__)


class AppNotifier:
    """StatusNotifier that shows messages as Textual toasts."""

    def __init__(self, app: App):
        self.app = app

    def info(self, msg: str) -> None:
        logger.info(msg)
        self.app.notify(msg)

    def warning(self, msg: str) -> None:
        logger.warning(msg)
        self.app.notify(msg, severity="warning")

    def error(self, msg: str) -> None:
        logger.error(msg)
        self.app.notify(msg, severity="error")


class KanataStatusApp(App):
    """TUI showing kanata's active layer."""

    TITLE = "kanata"
    BINDINGS = [
        Binding("r", "reconnect", "Reconnect"),
        Binding("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    def __init__(
        self,
        config: StatusConfig | str | Path,
        enable_service_monitor: bool = True,
        **kwargs,
    ):
        """Initialize app.

        Args:
            config: StatusConfig or path to TOML config file
            enable_service_monitor: Reconnect automatically on unit restart
        """
        super().__init__(**kwargs)
        self.config = config
        self.enable_service_monitor = enable_service_monitor
        self.indicator = LayerIndicator(id="layer")
        self.controller: KanataStatusController | None = None

    def compose(self) -> ComposeResult:
        """Compose app layout."""
        yield Header()
        with Middle():
            with Center():
                yield self.indicator
        yield Footer()

    async def on_mount(self) -> None:
        """Build the controller and attach it to the running loop."""
        try:
            self.controller = KanataStatusController(
                self.config,
                display=self.indicator,
                notifier=AppNotifier(self),
                enable_service_monitor=self.enable_service_monitor,
            )
            self.sub_title = str(self.controller.config.target)
            self.controller.attach(asyncio.get_running_loop())
        except Exception as e:
            logger.error(f"Failed to mount app: {e}", exc_info=True)
            self.exit(message=f"Error: {e}")

    async def on_unmount(self) -> None:
        """Cleanup on exit."""
        if self.controller:
            await self.controller.detach()

    def action_reconnect(self) -> None:
        """Reconnect now if the connection is down."""
        if not self.controller:
            return
        coordinator = self.controller.coordinator
        if coordinator.state is CoordinatorState.CONNECTING:
            self.notify("Connecting...")
            return
        if coordinator.is_connected:
            self.notify("Already connected")
            return
        self.controller.request_reconnect()
