"""systemd access over the system D-Bus using pydbus.

pydbus dispatches signals from a GLib main loop, which runs here in a
background thread. Signal callbacks hop back onto the asyncio loop with
call_soon_threadsafe, and blocking property reads run in a worker thread.
"""

import asyncio
import logging
import string
import threading
from collections.abc import Callable
from typing import Any

from kanata_status.errors import QueryError, SubscriptionError
from kanata_status.models import ServiceNotification

logger = logging.getLogger(__name__)

SYSTEMD_BUS_NAME = "org.freedesktop.systemd1"
SYSTEMD_MANAGER_PATH = "/org/freedesktop/systemd1"
SYSTEMD_MANAGER_IFACE = "org.freedesktop.systemd1.Manager"
SYSTEMD_UNIT_IFACE = "org.freedesktop.systemd1.Unit"
SYSTEMD_UNIT_PATH_PREFIX = "/org/freedesktop/systemd1/unit/"
PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"

_LABEL_CHARS = frozenset(string.ascii_letters + string.digits)


def escape_unit_name(unit_name: str) -> str:
    """Escape a unit name into its object path label.

    ``kanata.service`` becomes ``kanata_2eservice``: every character other than
    an ASCII letter or digit (and a leading digit) is written as ``_`` plus two
    hex digits.
    """
    if not unit_name:
        return "_"
    escaped = []
    for i, ch in enumerate(unit_name):
        if ch in _LABEL_CHARS and not (i == 0 and ch.isdigit()):
            escaped.append(ch)
        else:
            escaped.extend(f"_{b:02x}" for b in ch.encode("utf-8"))
    return "".join(escaped)


class SystemdBus:
    """ServiceBus implementation backed by pydbus."""

    def __init__(self, loop: asyncio.AbstractEventLoop, bus: Any = None):
        """Initialize bus access.

        Args:
            loop: Event loop signal callbacks are delivered on
            bus: Already opened pydbus bus. Opened lazily when None.
        """
        self.loop = loop
        self._bus = bus
        self._mainloop = None
        self._thread: threading.Thread | None = None

    def open(self) -> None:
        """Connect to the system bus and start the GLib main loop thread.

        Raises:
            SubscriptionError: If the system bus cannot be reached.
        """
        if self._bus is not None:
            return
        try:
            from gi.repository import GLib
            from pydbus import SystemBus

            self._bus = SystemBus()
        except Exception as e:
            raise SubscriptionError(f"failed to get dbus connection: {e}") from e

        self._mainloop = GLib.MainLoop()
        self._thread = threading.Thread(target=self._mainloop.run, name="glib-mainloop", daemon=True)
        self._thread.start()
        logger.debug("GLib main loop started")

    def close(self) -> None:
        """Stop the GLib main loop thread, if we started one."""
        if self._mainloop is not None:
            self._mainloop.quit()
            self._mainloop = None
            # opened by us; the next open() starts over
            self._bus = None
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
            logger.debug("GLib main loop stopped")

    def subscribe_job_removed(self, callback: Callable[[ServiceNotification], None]) -> Any:
        """Subscribe to systemd's JobRemoved signal."""
        self.open()

        # runs on the GLib thread
        def signal_fired(sender, obj, iface, signal, params):
            try:
                notification = ServiceNotification.from_job_removed(tuple(params))
            except (TypeError, ValueError) as e:
                logger.warning(f"ignore malformed JobRemoved payload {params!r}: {e}")
                return
            self.loop.call_soon_threadsafe(callback, notification)

        try:
            return self._bus.subscribe(
                sender=SYSTEMD_BUS_NAME,
                iface=SYSTEMD_MANAGER_IFACE,
                signal="JobRemoved",
                object=SYSTEMD_MANAGER_PATH,
                signal_fired=signal_fired,
            )
        except Exception as e:
            self.close()
            raise SubscriptionError(f"failed to subscribe to JobRemoved: {e}") from e

    def unsubscribe(self, handle: Any) -> None:
        try:
            handle.unsubscribe()
        except Exception as e:
            logger.warning(f"failed to unsubscribe from JobRemoved: {e}")
        self.close()

    def _get_active_state_sync(self, object_name: str) -> str:
        proxy = self._bus.get(SYSTEMD_BUS_NAME, SYSTEMD_UNIT_PATH_PREFIX + object_name)
        return proxy[PROPERTIES_IFACE].Get(SYSTEMD_UNIT_IFACE, "ActiveState")

    async def get_active_state(self, object_name: str) -> str:
        """Read the unit's ActiveState property."""
        if self._bus is None:
            raise QueryError("system bus is not open")
        try:
            state = await asyncio.to_thread(self._get_active_state_sync, object_name)
        except Exception as e:
            raise QueryError(f"failed to get ActiveState of {object_name}: {e}") from e
        if not isinstance(state, str):
            raise QueryError(f"unexpected ActiveState reply {state!r}")
        return state
