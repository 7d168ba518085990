"""Tests for ServiceStateMonitor filtering and state queries."""

import asyncio
from unittest.mock import Mock

import pytest
from conftest import FakeBus

from kanata_status.errors import QueryError
from kanata_status.models import ServiceNotification
from kanata_status.service_monitor import ServiceStateMonitor


def make_monitor(bus: FakeBus) -> ServiceStateMonitor:
    return ServiceStateMonitor(bus, "kanata.service", "kanata_2eservice")


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_done_and_active_fires_callback():
    bus = FakeBus(states=["active"])
    monitor = make_monitor(bus)
    on_activated = Mock()
    monitor.subscribe(on_activated)

    bus.emit(ServiceNotification("kanata.service", "done"))
    await settle()

    assert bus.queries == ["kanata_2eservice"]
    on_activated.assert_called_once_with()


@pytest.mark.asyncio
async def test_failed_job_never_queries():
    bus = FakeBus()
    monitor = make_monitor(bus)
    on_activated = Mock()
    monitor.subscribe(on_activated)

    bus.emit(ServiceNotification("kanata.service", "failed"))
    await settle()

    assert bus.queries == []
    on_activated.assert_not_called()


@pytest.mark.asyncio
async def test_other_unit_never_queries():
    bus = FakeBus()
    monitor = make_monitor(bus)
    on_activated = Mock()
    monitor.subscribe(on_activated)

    bus.emit(ServiceNotification("sshd.service", "done"))
    await settle()

    assert bus.queries == []
    on_activated.assert_not_called()


@pytest.mark.asyncio
async def test_inactive_state_does_not_fire():
    bus = FakeBus(states=["inactive"])
    monitor = make_monitor(bus)
    on_activated = Mock()
    monitor.subscribe(on_activated)

    bus.emit(ServiceNotification("kanata.service", "done"))
    await settle()

    assert bus.queries == ["kanata_2eservice"]
    on_activated.assert_not_called()


@pytest.mark.asyncio
async def test_query_error_is_dropped(caplog):
    bus = FakeBus(states=[QueryError("org.freedesktop.DBus.Error.NoReply"), "active"])
    monitor = make_monitor(bus)
    on_activated = Mock()
    monitor.subscribe(on_activated)

    bus.emit(ServiceNotification("kanata.service", "done"))
    await settle()

    on_activated.assert_not_called()
    assert "failed to get kanata.service state" in caplog.text
    # no retry
    assert bus.queries == ["kanata_2eservice"]


@pytest.mark.asyncio
async def test_unknown_state_is_not_active():
    bus = FakeBus(states=["something-new"])
    monitor = make_monitor(bus)
    on_activated = Mock()
    monitor.subscribe(on_activated)

    await monitor.handle_notification(ServiceNotification("kanata.service", "done"))
    on_activated.assert_not_called()


@pytest.mark.asyncio
async def test_unsubscribe_cancels_in_flight_query():
    class SlowBus(FakeBus):
        async def get_active_state(self, object_name):
            await asyncio.sleep(10)
            return "active"

    bus = SlowBus()
    monitor = make_monitor(bus)
    on_activated = Mock()
    handle = monitor.subscribe(on_activated)

    bus.emit(ServiceNotification("kanata.service", "done"))
    await settle()
    monitor.unsubscribe(handle)
    await settle()

    assert bus.unsubscribed == [handle]
    on_activated.assert_not_called()


def test_notification_from_job_removed_payload():
    params = (1234, "/org/freedesktop/systemd1/job/1234", "kanata.service", "done")
    assert ServiceNotification.from_job_removed(params) == ServiceNotification("kanata.service", "done")
