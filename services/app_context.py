"""Application wiring: builds the sync services once and hands them out."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.settings import API, NETWORK
from services.api_client import ApiClient
from services.app_health import AppHealth
from services.local_mirror import LocalMirror
from services.network_monitor import NetworkMonitor, ProbeNetworkMonitor
from services.queue_store import QueueStore, SqlQueueStore
from services.reliability import ReliabilityLayer
from services.workouts import WorkoutService
from storage.config import AppConfig, load_config


@dataclass
class AppContext:
    api: ApiClient
    store: QueueStore
    network: NetworkMonitor
    mirror: LocalMirror
    reliability: ReliabilityLayer
    workouts: WorkoutService
    health: AppHealth

    async def start(self, *, poll: bool = True) -> None:
        await self.reliability.start()
        if poll and isinstance(self.network, ProbeNetworkMonitor):
            self.network.start()

    async def aclose(self) -> None:
        await self.reliability.stop()
        self.health.stop_monitoring()
        if isinstance(self.network, ProbeNetworkMonitor):
            await self.network.stop()
        await self.api.aclose()


def build_app_context(
    config: Optional[AppConfig] = None,
    *,
    network: Optional[NetworkMonitor] = None,
    store: Optional[QueueStore] = None,
) -> AppContext:
    cfg = config or load_config()
    monitor = network or ProbeNetworkMonitor(probe_url=cfg.probe_url or NETWORK.probe_url)
    api = ApiClient(cfg.api_base_url or API.base_url, network=monitor)
    queue_store = store or SqlQueueStore()
    mirror = LocalMirror()
    reliability = ReliabilityLayer(api, queue_store, monitor, mirror)
    return AppContext(
        api=api,
        store=queue_store,
        network=monitor,
        mirror=mirror,
        reliability=reliability,
        workouts=WorkoutService(reliability),
        health=AppHealth(reliability),
    )


__all__ = ["AppContext", "build_app_context"]
