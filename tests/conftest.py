"""Pytest configuration and fixtures."""

import asyncio
import socket
import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from kanata_status.errors import ReadError  # noqa: E402
from kanata_status.models import ConnectionTarget, IndicatorState  # noqa: E402


class RecordingDisplay:
    """DisplayPort double that records every call in order."""

    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.state = IndicatorState()
        self.destroyed = False

    def set_layer(self, text: str) -> None:
        self.calls.append(("set_layer", text))
        self.state.text = text

    def set_visible(self, visible: bool) -> None:
        self.calls.append(("set_visible", visible))
        self.state.visible = visible

    def destroy(self) -> None:
        self.calls.append(("destroy", None))
        self.destroyed = True

    @property
    def layers(self) -> list[str]:
        return [arg for name, arg in self.calls if name == "set_layer"]


class ScriptedConnection:
    """Connection double returning scripted chunks; exceptions in the script are raised."""

    def __init__(self, chunks, target=ConnectionTarget("127.0.0.1", 10000)):
        self.target = target
        self._chunks = list(chunks)
        self.close_calls = 0

    @property
    def is_open(self) -> bool:
        return self.close_calls == 0

    async def read_chunk(self, cancel_token) -> bytes:
        if cancel_token.cancelled:
            raise ReadError("cancelled", cancelled=True)
        item = self._chunks.pop(0) if self._chunks else b""
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.close_calls += 1


class FakeBus:
    """ServiceBus double; tests push notifications with emit()."""

    def __init__(self, states=None, fail_subscribe: Exception | None = None):
        self.states = list(states or [])
        self.fail_subscribe = fail_subscribe
        self.callbacks = []
        self.unsubscribed = []
        self.queries: list[str] = []

    def subscribe_job_removed(self, callback):
        if self.fail_subscribe is not None:
            raise self.fail_subscribe
        self.callbacks.append(callback)
        return f"handle-{len(self.callbacks)}"

    def unsubscribe(self, handle) -> None:
        self.unsubscribed.append(handle)

    async def get_active_state(self, object_name: str) -> str:
        self.queries.append(object_name)
        state = self.states.pop(0) if self.states else "active"
        if isinstance(state, Exception):
            raise state
        return state

    def emit(self, notification) -> None:
        for callback in list(self.callbacks):
            callback(notification)


class KanataServer:
    """Minimal stand-in for kanata's TCP server on localhost."""

    def __init__(self):
        self.server: asyncio.AbstractServer | None = None
        self.writers: list[asyncio.StreamWriter] = []
        self.connected = asyncio.Event()

    async def start(self) -> ConnectionTarget:
        self.server = await asyncio.start_server(self._on_client, "127.0.0.1", 0)
        port = self.server.sockets[0].getsockname()[1]
        return ConnectionTarget("127.0.0.1", port)

    async def _on_client(self, reader, writer) -> None:
        self.writers.append(writer)
        self.connected.set()

    @property
    def client_count(self) -> int:
        return len(self.writers)

    async def send(self, payload: bytes, client: int = -1) -> None:
        writer = self.writers[client]
        writer.write(payload)
        await writer.drain()

    async def drop_clients(self) -> None:
        for writer in self.writers:
            writer.close()
        self.writers.clear()
        self.connected.clear()

    async def close(self) -> None:
        await self.drop_clients()
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll ``predicate`` until true or fail the test."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            pytest.fail("condition not reached in time")
        await asyncio.sleep(0.01)


def unused_target() -> ConnectionTarget:
    """A localhost address nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return ConnectionTarget("127.0.0.1", port)


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def tmp_config(tmp_path):
    """Create a temporary config file."""
    config = tmp_path / "config.toml"
    config.write_text(
        """
[kanata]
host = "127.0.0.1"
port = 5829

[systemd]
service-name = "kanata.service"
"""
    )
    return config

