from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional, Set

import httpx

from core.error_codes import ErrorCode
from core.logs import get_logger
from core.settings import NETWORK


logger = get_logger("network")


@dataclass(frozen=True)
class NetworkState:
    connected: bool
    reachable: Optional[bool] = None

    @property
    def is_online(self) -> bool:
        # Unknown reachability counts as reachable.
        return self.connected and self.reachable is not False


Listener = Callable[[NetworkState], None]


class NetworkMonitor:
    """Connectivity snapshot plus change notifications."""

    def __init__(self, initial: Optional[NetworkState] = None) -> None:
        self._state = initial or NetworkState(connected=True, reachable=None)
        self._listeners: Set[Listener] = set()

    def current(self) -> NetworkState:
        return self._state

    async def fetch(self) -> NetworkState:
        return self._state

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        self._listeners.add(callback)

        def unsubscribe() -> None:
            self._listeners.discard(callback)

        return unsubscribe

    def _publish(self, state: NetworkState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Network listener %r failed", listener)


class StaticNetworkMonitor(NetworkMonitor):
    """Monitor whose state is pushed in by the host application."""

    def set_state(self, connected: bool, reachable: Optional[bool] = None) -> None:
        self._publish(NetworkState(connected=connected, reachable=reachable))

    def set_online(self, online: bool) -> None:
        self.set_state(online, online)


class ProbeNetworkMonitor(NetworkMonitor):
    """Derives connectivity from a TCP link check and an HTTP reachability probe."""

    def __init__(
        self,
        *,
        probe_url: str = NETWORK.probe_url,
        link_host: str = NETWORK.link_check_host,
        link_port: int = NETWORK.link_check_port,
        timeout: float = NETWORK.timeout_sec,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__()
        self.probe_url = probe_url
        self.link_host = link_host
        self.link_port = link_port
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._poll_task: asyncio.Task | None = None

    async def _check_link(self) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.link_host, self.link_port),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def _check_reachable(self) -> bool:
        try:
            response = await self._client.head(self.probe_url)
        except httpx.HTTPError as exc:
            logger.debug("[%s] Reachability probe failed: %s", ErrorCode.NETWORK_REQUEST_FAILED.value, exc)
            return False
        return response.status_code in (200, 204)

    async def fetch(self) -> NetworkState:
        connected = await self._check_link()
        reachable = await self._check_reachable() if connected else False
        self._publish(NetworkState(connected=connected, reachable=reachable))
        return self._state

    async def _poll(self, interval: float) -> None:
        while True:
            try:
                await self.fetch()
            except Exception:
                logger.exception("Connectivity check crashed")
            await asyncio.sleep(interval)

    def start(self, interval: float = NETWORK.poll_interval_sec) -> None:
        if self._poll_task and not self._poll_task.done():
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll(interval))

    async def stop(self) -> None:
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    "NetworkState",
    "NetworkMonitor",
    "StaticNetworkMonitor",
    "ProbeNetworkMonitor",
]
