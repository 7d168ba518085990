"""Watch systemd for the kanata unit becoming active again."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from kanata_status.errors import QueryError
from kanata_status.models import ServiceNotification, ServiceState, parse_service_state

logger = logging.getLogger(__name__)

JOB_RESULT_DONE = "done"


class ServiceBus(Protocol):
    """The narrow slice of the service manager the monitor needs."""

    def subscribe_job_removed(self, callback: Callable[[ServiceNotification], None]) -> Any:
        """Deliver every JobRemoved signal to ``callback`` on the event loop thread.

        Returns an opaque handle for unsubscribe(). Raises SubscriptionError if
        the bus is unavailable.
        """
        ...

    def unsubscribe(self, handle: Any) -> None:
        """Stop delivering signals for ``handle``."""
        ...

    async def get_active_state(self, object_name: str) -> str:
        """Return the ActiveState of the unit at ``/org/freedesktop/systemd1/unit/<object_name>``.

        Raises QueryError on failure.
        """
        ...


class ServiceStateMonitor:
    """Call back when the configured unit finishes a job and is active."""

    def __init__(self, bus: ServiceBus, unit_name: str, object_name: str):
        """Initialize monitor.

        Args:
            bus: Service manager access
            unit_name: Unit name as it appears in JobRemoved, e.g. ``kanata.service``
            object_name: Escaped object path suffix, e.g. ``kanata_2eservice``
        """
        self.bus = bus
        self.unit_name = unit_name
        self.object_name = object_name
        self._on_activated: Callable[[], None] | None = None
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, on_activated: Callable[[], None]) -> Any:
        """Register for JobRemoved and call ``on_activated`` when the unit is active.

        Raises:
            SubscriptionError: If the bus is unavailable.
        """
        self._on_activated = on_activated
        handle = self.bus.subscribe_job_removed(self._on_job_removed)
        logger.info(f"Subscribed to JobRemoved for {self.unit_name}")
        return handle

    def unsubscribe(self, handle: Any) -> None:
        """Drop the subscription and any in-flight state query. Call exactly once."""
        self.bus.unsubscribe(handle)
        for task in self._pending:
            task.cancel()
        self._pending.clear()
        self._on_activated = None

    def _on_job_removed(self, notification: ServiceNotification) -> None:
        # filter before querying to avoid needless D-Bus round-trips
        if not self.is_relevant(notification):
            return
        task = asyncio.get_running_loop().create_task(self.handle_notification(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def is_relevant(self, notification: ServiceNotification) -> bool:
        return notification.job_result == JOB_RESULT_DONE and notification.unit_name == self.unit_name

    async def handle_notification(self, notification: ServiceNotification) -> None:
        """Query the unit state for a relevant notification and fire the callback if active."""
        if not self.is_relevant(notification):
            return
        try:
            raw_state = await self.bus.get_active_state(self.object_name)
        except QueryError as e:
            logger.warning(f"failed to get {self.unit_name} state using dbus: {e}")
            return

        if parse_service_state(raw_state) is not ServiceState.ACTIVE:
            logger.debug(f"{self.unit_name} finished a job but is {raw_state}")
            return
        logger.info(f"{self.unit_name} just started")
        if self._on_activated is not None:
            self._on_activated()
