"""Connection lifecycle: at most one kanata connection, reconnect on service restart."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from kanata_status.connection import CancelToken, Connection
from kanata_status.display import DisplayPort
from kanata_status.errors import ConnectError, SubscriptionError
from kanata_status.layer_watcher import LayerWatcher
from kanata_status.models import DISCONNECTED_TEXT, ConnectionTarget, CoordinatorState, WatchOutcome
from kanata_status.notifier import NoOpNotifier, StatusNotifier
from kanata_status.service_monitor import ServiceStateMonitor

logger = logging.getLogger(__name__)


@dataclass
class CoreState:
    """Everything owned between start() and stop()."""

    cancel_token: CancelToken
    connection: Connection | None = None
    tasks: set[asyncio.Task] = field(default_factory=set)
    monitor: ServiceStateMonitor | None = None
    subscription: Any = None


class ReconnectCoordinator:
    """Disconnected/Connecting/Connected state machine driving one LayerWatcher at a time.

    The state is only changed synchronously (no await between checking it and
    acting on it), so an activation arriving while a connection is open or
    being opened can never start a second one.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        display: DisplayPort,
        notifier: StatusNotifier | None = None,
    ):
        self.target = target
        self.display = display
        self.notifier = notifier or NoOpNotifier()
        self._state = CoordinatorState.DISCONNECTED
        self._core: CoreState | None = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is CoordinatorState.CONNECTED

    @property
    def is_started(self) -> bool:
        return self._core is not None

    @property
    def connection(self) -> Connection | None:
        """The live connection, if any."""
        return self._core.connection if self._core else None

    async def start(self) -> None:
        """Open the initial connection. A failed attempt is logged, not retried."""
        if self._core is not None:
            return
        core = CoreState(cancel_token=CancelToken())
        self._core = core
        self._state = CoordinatorState.CONNECTING
        await self._connect_and_watch(core)

    def attach_monitor(self, monitor: ServiceStateMonitor) -> bool:
        """Reconnect whenever ``monitor`` reports the service active.

        Returns False if the bus is unavailable; the current connection is
        unaffected but no automatic reconnect will happen.
        """
        core = self._core
        if core is None:
            raise RuntimeError("Coordinator not started. Call start() first.")
        try:
            core.subscription = monitor.subscribe(self.on_activated)
        except SubscriptionError as e:
            logger.error(f"skip subscribing kanata starting signal: {e}")
            self.notifier.warning(f"Automatic reconnect disabled: {e}")
            return False
        core.monitor = monitor
        return True

    def on_activated(self) -> None:
        """The kanata service became active: reconnect if disconnected."""
        core = self._core
        if core is None:
            logger.debug("activation ignored - coordinator stopped")
            return
        if self._state is CoordinatorState.CONNECTING:
            logger.warning(f"activation ignored - already connecting to kanata {self.target}")
            return
        if self._state is CoordinatorState.CONNECTED:
            logger.warning(
                "this should never happen: the previous connection should be closed "
                "(by server) now, but it is still open"
            )
            return
        logger.info(f"re-connect to kanata server {self.target}")
        self._state = CoordinatorState.CONNECTING
        self._spawn(core, self._connect_and_watch(core))

    async def stop(self) -> None:
        """Cancel reads, close the connection and unsubscribe. Safe from any state."""
        core, self._core = self._core, None
        if core is None:
            return
        core.cancel_token.cancel()
        if core.monitor is not None:
            core.monitor.unsubscribe(core.subscription)

        current = asyncio.current_task()
        pending = [t for t in core.tasks if t is not current]
        for task in pending:
            # a connect in flight never sees the token
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if core.connection is not None:
            await core.connection.aclose()
            core.connection = None
        self._state = CoordinatorState.DISCONNECTED
        logger.info(f"stopped watching kanata {self.target}")

    def _spawn(self, core: CoreState, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        core.tasks.add(task)
        task.add_done_callback(core.tasks.discard)
        return task

    async def _connect_and_watch(self, core: CoreState) -> None:
        try:
            connection = await Connection.connect(self.target)
        except ConnectError as e:
            logger.error(str(e))
            if self._core is core:
                self._state = CoordinatorState.DISCONNECTED
            return

        if self._core is not core or core.cancel_token.cancelled:
            # stopped while connecting
            connection.close()
            return
        core.connection = connection
        self._state = CoordinatorState.CONNECTED
        self.notifier.info(f"Connected to kanata {self.target}")
        self._spawn(core, self._watch(core, connection))

    async def _watch(self, core: CoreState, connection: Connection) -> None:
        watcher = LayerWatcher(connection, self.display, core.cancel_token)
        try:
            outcome = await watcher.run()
        except Exception as e:
            logger.error(f"layer watcher for kanata {self.target} failed: {e}", exc_info=True)
            connection.close()
            self._hide_indicator()
            outcome = WatchOutcome.ERROR
        if outcome is WatchOutcome.CANCELLED or self._core is not core:
            return
        core.connection = None
        self._state = CoordinatorState.DISCONNECTED
        if outcome is WatchOutcome.CLOSED_BY_PEER:
            self.notifier.info(f"kanata {self.target} closed the connection")
        else:
            self.notifier.error(f"Lost connection to kanata {self.target}")

    def _hide_indicator(self) -> None:
        try:
            self.display.set_visible(False)
            self.display.set_layer(DISCONNECTED_TEXT)
        except Exception as e:
            logger.error(f"failed to hide indicator: {e}")
