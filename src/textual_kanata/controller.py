"""Non-Textual controller for kanata status tracking. Primary embed point."""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

from kanata_status.config import StatusConfig, load_status_config
from kanata_status.coordinator import ReconnectCoordinator
from kanata_status.display import DisplayPort, NullDisplay
from kanata_status.notifier import NoOpNotifier, StatusNotifier
from kanata_status.service_monitor import ServiceBus, ServiceStateMonitor

logger = logging.getLogger(__name__)


def _default_bus_factory(loop: asyncio.AbstractEventLoop) -> ServiceBus:
    from kanata_status.systemd_bus import SystemdBus

    return SystemdBus(loop)


class KanataStatusController:
    """Host lifecycle adapter around ReconnectCoordinator.

    Stable methods: attach(), detach(), request_reconnect(), coordinator.
    """

    def __init__(
        self,
        config: StatusConfig | str | Path,
        display: DisplayPort | None = None,
        notifier: StatusNotifier | None = None,
        enable_service_monitor: bool = True,
        bus_factory: Callable[[asyncio.AbstractEventLoop], ServiceBus] | None = None,
    ):
        """Initialize controller.

        Args:
            config: StatusConfig, or path to a TOML config
            display: Indicator to drive (defaults to NullDisplay)
            notifier: Optional notification handler (defaults to NoOpNotifier - silent)
            enable_service_monitor: If False, never reconnect on unit restart
            bus_factory: Builds the ServiceBus for a loop (defaults to pydbus SystemdBus)
        """
        if isinstance(config, StatusConfig):
            self.config = config
        else:
            try:
                self.config = load_status_config(config)
            except Exception as e:
                logger.error(f"Failed to load config from {config}: {e}")
                raise

        self.display = display or NullDisplay()
        self.notifier = notifier or NoOpNotifier()
        self.enable_service_monitor = enable_service_monitor and self.config.monitor_enabled
        self.bus_factory = bus_factory or _default_bus_factory
        self.coordinator = ReconnectCoordinator(self.config.target, self.display, self.notifier)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._start_task: asyncio.Task | None = None

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach to a running event loop, connect and subscribe. Idempotent."""
        if self._loop is not None:
            return

        if not loop.is_running():
            raise RuntimeError(
                "Event loop must be running before attach(). "
                "Call attach() from within on_mount() or after loop started."
            )

        self._loop = loop
        self._start_task = loop.create_task(self._start())

    async def _start(self) -> None:
        await self.coordinator.start()
        if not self.enable_service_monitor or not self.coordinator.is_started:
            return
        bus: Any = self.bus_factory(self._loop)
        monitor = ServiceStateMonitor(bus, self.config.service_name, self.config.dbus_name)
        if self.coordinator.attach_monitor(monitor):
            self.notifier.info(f"Watching {self.config.service_name} for restarts")

    async def detach(self) -> None:
        """Stop the coordinator and release the indicator."""
        if self._loop is None:
            return
        if self._start_task is not None and not self._start_task.done():
            self._start_task.cancel()
            await asyncio.gather(self._start_task, return_exceptions=True)
        self._start_task = None
        try:
            await self.coordinator.stop()
        except Exception as e:
            logger.error(f"Error stopping coordinator: {e}")
        self.display.destroy()
        self._loop = None

    def request_reconnect(self) -> None:
        """Reconnect now if disconnected (sync-safe).

        Goes through the same path as a service restart notification.
        """
        if self._loop is None:
            raise RuntimeError("Controller not attached to event loop. Call attach() first.")
        self.coordinator.on_activated()
