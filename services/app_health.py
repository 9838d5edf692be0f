"""Periodic health snapshot of the sync pipeline."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Set

from core.logs import get_logger
from core.settings import HEALTH
from datetime_utils import utc_now
from services.network_monitor import NetworkState
from services.reliability import ReliabilityLayer


logger = get_logger("health")


@dataclass
class HealthStatus:
    is_connected: bool
    has_pending_operations: bool
    has_high_priority_pending: bool
    last_check_time: Optional[datetime]
    uptime_sec: float

    @property
    def is_healthy(self) -> bool:
        return self.is_connected or not self.has_high_priority_pending


class AppHealth:
    def __init__(self, reliability: ReliabilityLayer) -> None:
        self.reliability = reliability
        self._started = time.monotonic()
        self._task: Optional[asyncio.Task] = None
        self.last_status: Optional[HealthStatus] = None
        self._was_connected = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._pending: Set[asyncio.Task] = set()

    async def check_health(self) -> HealthStatus:
        status = HealthStatus(
            is_connected=self.reliability.is_online,
            has_pending_operations=self.reliability.get_pending_operations_count() > 0,
            has_high_priority_pending=self.reliability.has_high_priority_pending_operations(),
            last_check_time=utc_now(),
            uptime_sec=time.monotonic() - self._started,
        )
        self.last_status = status
        if status.is_connected and status.has_high_priority_pending:
            logger.info("High priority operations pending while online, syncing")
            await self.reliability.manual_sync()
        return status

    async def fix_health_issues(self) -> HealthStatus:
        if self.reliability.get_pending_operations_count() > 0:
            await self.reliability.manual_sync()
        return await self.check_health()

    async def _monitor(self, interval: float) -> None:
        while True:
            await self._checked()
            await asyncio.sleep(interval)

    def _on_network_change(self, state: NetworkState) -> None:
        was_connected = self._was_connected
        self._was_connected = state.is_online
        if state.is_online and not was_connected:
            logger.info("Network reconnected, checking health")
            task = asyncio.get_running_loop().create_task(self._checked())
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _checked(self) -> None:
        try:
            await self.check_health()
        except Exception:
            logger.exception("Health check crashed")

    def start_monitoring(self, interval: float = HEALTH.interval_sec) -> None:
        self.stop_monitoring()
        self._task = asyncio.get_running_loop().create_task(self._monitor(interval))
        network = self.reliability.network
        self._was_connected = network.current().is_online
        self._unsubscribe = network.subscribe(self._on_network_change)

    def stop_monitoring(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task is not None:
            self._task.cancel()
            self._task = None

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done()


__all__ = ["AppHealth", "HealthStatus"]
