"""Tests for KanataStatusApp and LayerIndicator."""

import pytest
from conftest import KanataServer, unused_target, wait_for

from kanata_status.config import StatusConfig
from kanata_status.models import CoordinatorState
from textual_kanata.app import KanataStatusApp
from textual_kanata.widgets import LayerIndicator


@pytest.mark.asyncio
async def test_indicator_hidden_until_first_layer():
    server = KanataServer()
    try:
        target = await server.start()
        app = KanataStatusApp(StatusConfig(target=target), enable_service_monitor=False)
        async with app.run_test() as pilot:
            indicator = app.query_one("#layer", LayerIndicator)
            assert indicator.display is False
            assert indicator.indicator_state.text == "init..."

            await wait_for(lambda: server.client_count == 1)
            await server.send(b'{"LayerChange":{"new":"qwerty"}}')
            await wait_for(lambda: indicator.indicator_state.visible)
            await pilot.pause()

            assert indicator.display is True
            assert indicator.indicator_state.text == "qwerty"

            await server.drop_clients()
            await wait_for(lambda: not indicator.indicator_state.visible)
            assert indicator.display is False
            assert indicator.indicator_state.text == "disconnected"
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_reconnect_binding():
    server = KanataServer()
    try:
        target = await server.start()
        app = KanataStatusApp(StatusConfig(target=target), enable_service_monitor=False)
        async with app.run_test() as pilot:
            await wait_for(lambda: app.controller.coordinator.is_connected)
            await server.drop_clients()
            await wait_for(lambda: app.controller.coordinator.state is CoordinatorState.DISCONNECTED)

            await pilot.press("r")
            await wait_for(lambda: server.client_count == 1)
            await wait_for(lambda: app.controller.coordinator.is_connected)
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_app_runs_without_kanata():
    app = KanataStatusApp(StatusConfig(target=unused_target()), enable_service_monitor=False)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert app.controller is not None
        await wait_for(lambda: app.controller._start_task.done())
        assert not app.controller.coordinator.is_connected
        assert app.query_one("#layer", LayerIndicator).display is False
