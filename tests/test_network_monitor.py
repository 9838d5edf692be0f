import httpx
import pytest

from services.network_monitor import NetworkState, ProbeNetworkMonitor, StaticNetworkMonitor


def test_online_requires_connection_and_not_unreachable():
    assert NetworkState(connected=True, reachable=None).is_online is True
    assert NetworkState(connected=True, reachable=True).is_online is True
    assert NetworkState(connected=True, reachable=False).is_online is False
    assert NetworkState(connected=False, reachable=True).is_online is False


def test_listeners_fire_only_on_change():
    monitor = StaticNetworkMonitor()
    seen = []
    unsubscribe = monitor.subscribe(seen.append)

    monitor.set_online(False)
    monitor.set_online(False)
    monitor.set_online(True)
    unsubscribe()
    monitor.set_online(False)

    assert [state.is_online for state in seen] == [False, True]


def test_failing_listener_does_not_block_others():
    monitor = StaticNetworkMonitor()
    seen = []

    def broken(state):
        raise RuntimeError("listener bug")

    monitor.subscribe(broken)
    monitor.subscribe(seen.append)
    monitor.set_state(True, False)

    assert seen == [NetworkState(connected=True, reachable=False)]


class _LinkUp(ProbeNetworkMonitor):
    link = True

    async def _check_link(self):
        return self.link


@pytest.mark.asyncio
async def test_probe_monitor_combines_link_and_reachability():
    status = {"code": 204}
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(status["code"])))
    monitor = _LinkUp(probe_url="https://probe.test/generate_204", client=client)
    seen = []
    monitor.subscribe(seen.append)

    assert (await monitor.fetch()).is_online is True

    status["code"] = 503
    assert (await monitor.fetch()).is_online is False

    monitor.link = False
    state = await monitor.fetch()
    assert state == NetworkState(connected=False, reachable=False)

    assert [s.is_online for s in seen] == [True, False, False]
    await monitor.stop()


@pytest.mark.asyncio
async def test_probe_failure_counts_as_unreachable():
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monitor = _LinkUp(client=client)

    state = await monitor.fetch()

    assert state.connected is True
    assert state.reachable is False
