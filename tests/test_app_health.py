import asyncio

import pytest

from conftest import MemoryStore
from models.pending_op import PendingOperation
from services.app_health import AppHealth


def _pending(priority):
    return PendingOperation(
        id=f"POST_/api/{priority}_1_x",
        endpoint=f"/api/{priority}",
        method="POST",
        body={},
        timestamp=1,
        priority=priority,
    )


@pytest.mark.asyncio
async def test_high_priority_backlog_triggers_sync_when_online(make_layer, api):
    layer = make_layer(store=MemoryStore([_pending("high")]))
    await layer.start()
    health = AppHealth(layer)

    status = await health.check_health()

    assert status.is_connected is True
    assert status.has_high_priority_pending is True
    assert [call[1] for call in api.calls] == ["/api/high"]
    assert layer.get_pending_operations_count() == 0


@pytest.mark.asyncio
async def test_low_priority_backlog_waits_for_fix(make_layer, api):
    layer = make_layer(store=MemoryStore([_pending("low")]))
    await layer.start()
    health = AppHealth(layer)

    status = await health.check_health()
    assert status.has_pending_operations is True
    assert api.calls == []

    fixed = await health.fix_health_issues()
    assert fixed.has_pending_operations is False
    assert health.last_status is fixed


@pytest.mark.asyncio
async def test_offline_check_does_not_sync(make_layer, api, network):
    network.set_online(False)
    layer = make_layer(store=MemoryStore([_pending("high")]))
    await layer.start()

    status = await AppHealth(layer).check_health()

    assert status.is_connected is False
    assert status.is_healthy is False
    assert api.calls == []


@pytest.mark.asyncio
async def test_monitoring_runs_checks_until_stopped(make_layer):
    layer = make_layer()
    await layer.start()
    health = AppHealth(layer)

    health.start_monitoring(0.01)
    await asyncio.sleep(0.05)

    assert health.is_monitoring is True
    assert health.last_status is not None
    assert health.last_status.is_healthy is True

    health.stop_monitoring()
    assert health.is_monitoring is False


@pytest.mark.asyncio
async def test_reconnect_triggers_health_check(make_layer, network):
    network.set_online(False)
    layer = make_layer()
    await layer.start()
    health = AppHealth(layer)
    health.start_monitoring(3600)
    await asyncio.sleep(0)
    assert health.last_status.is_connected is False

    network.set_online(True)
    for _ in range(3):
        await asyncio.sleep(0)

    assert health.last_status.is_connected is True

    health.stop_monitoring()
    seen = health.last_status
    network.set_online(False)
    network.set_online(True)
    await layer.stop()
    assert health.last_status is seen
