"""Offline-resilient write pipeline.

Mutating requests are executed immediately when the device is online and
deferred to a durable queue otherwise. The queue is drained on reconnect or on
demand, in priority order, with exponential backoff and a retry ceiling.
"""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set

from core.error_codes import ErrorCode, status_to_error_code
from core.logs import get_logger
from core.priorities import DEFAULT_PRIORITY, is_valid_priority
from core.settings import RELIABILITY
from datetime_utils import epoch_ms_to_rfc3339, now_ms
from models.pending_op import VALID_METHODS, PendingOperation
from services.network_monitor import NetworkMonitor, NetworkState
from services.queue_store import QueueStore
from services.retry_policy import is_due, is_exhausted, replay_key


logger = get_logger("reliability")


@dataclass
class OperationResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    queued: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.queued:
            result["queued"] = True
        return result


@dataclass
class SyncReport:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    remaining: int = 0
    dropped_ids: List[str] = field(default_factory=list)


FailureListener = Callable[[PendingOperation], None]


def _reject_arguments(endpoint: str, method: str, priority: str) -> Optional[str]:
    if not endpoint or not isinstance(endpoint, str):
        return "Endpoint must be a non-empty string"
    if method not in VALID_METHODS:
        return f"Unsupported method: {method}"
    if not is_valid_priority(priority):
        return f"Unsupported priority: {priority}"
    return None


class ReliabilityLayer:
    def __init__(
        self,
        api,
        store: QueueStore,
        network: NetworkMonitor,
        mirror=None,
        *,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        max_retry_attempts: int = RELIABILITY.max_retry_attempts,
        retry_backoff_ms: int = RELIABILITY.retry_backoff_ms,
        min_sync_interval_ms: int = RELIABILITY.min_sync_interval_ms,
        inter_operation_delay_ms: int = RELIABILITY.inter_operation_delay_ms,
        failed_history_limit: int = RELIABILITY.failed_history_limit,
    ) -> None:
        self.api = api
        self.store = store
        self.network = network
        self.mirror = mirror
        self._clock = clock
        self._sleep = sleep
        self.max_retry_attempts = max_retry_attempts
        self.retry_backoff_ms = retry_backoff_ms
        self.min_sync_interval_ms = min_sync_interval_ms
        self.inter_operation_delay_ms = inter_operation_delay_ms

        self._online = network.current().is_online
        self._queue: List[PendingOperation] = []
        self._loaded = False
        self._sync_in_progress = False
        self._last_sync_attempt = 0
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._background: Set[asyncio.Task] = set()
        self._failed: Deque[PendingOperation] = deque(maxlen=failed_history_limit)
        self._failure_listeners: Set[FailureListener] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    async def start(self) -> None:
        await self._ensure_loaded()
        state = await self.network.fetch()
        self._online = state.is_online
        logger.info("Initial network status: %s", "online" if self._online else "offline")
        if self._unsubscribe is None:
            self._unsubscribe = self.network.subscribe(self._on_network_change)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _load(self) -> List[PendingOperation]:
        try:
            return list(await self.store.load())
        except Exception as exc:
            logger.error("[%s] Failed to load pending operations: %s", ErrorCode.DATA_SYNC_FAILED.value, exc)
            return []

    async def _ensure_loaded(self) -> None:
        """Merge the persisted queue into memory once, before the first mutation."""
        if self._loaded:
            return
        stored = await self._load()
        self._loaded = True
        known = {op.id for op in self._queue}
        restored = [op for op in stored if op.id not in known]
        if restored:
            logger.info("Restored %d pending operations from storage", len(restored))
        self._queue = restored + self._queue

    def _on_network_change(self, state: NetworkState) -> None:
        was_online = self._online
        self._online = state.is_online
        if not was_online and self._online:
            logger.info("Network connection restored, syncing pending operations")
            self._schedule_sync()
        elif was_online and not self._online:
            logger.info("Network connection lost, operations will be queued")

    def _schedule_sync(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; reconnect sync not scheduled")
            return
        task = loop.create_task(self.sync_pending_operations())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Writes
    async def perform_operation(
        self,
        endpoint: str,
        method: str,
        body: Any = None,
        *,
        priority: str = DEFAULT_PRIORITY,
        offline_support: bool = True,
        sync_target: Optional[str] = None,
    ) -> OperationResult:
        method = (method or "").upper()
        rejected = _reject_arguments(endpoint, method, priority)
        if rejected is not None:
            logger.warning(
                "[%s] Rejected operation (%s %s): %s",
                ErrorCode.UNEXPECTED_ERROR.value,
                method,
                endpoint,
                rejected,
            )
            return OperationResult(success=False, error=rejected)

        if not self._online and offline_support:
            await self._enqueue(endpoint, method, body, priority)
            logger.info("Queued operation (%s %s) for later execution", method, endpoint)
            return OperationResult(success=False, queued=True)

        try:
            response = await self._send(endpoint, method, body)
        except Exception as exc:
            if offline_support:
                await self._enqueue(endpoint, method, body, priority)
                logger.warning(
                    "[%s] Network error, queued operation (%s %s) for retry: %s",
                    ErrorCode.NETWORK_REQUEST_FAILED.value,
                    method,
                    endpoint,
                    exc,
                )
            else:
                logger.warning("%s %s failed: %s", method, endpoint, exc)
            return OperationResult(success=False, error=str(exc) or "Network error")

        if response.ok:
            if sync_target and response.data:
                await self._update_local_mirror(sync_target, response.data)
            return OperationResult(success=True, data=response.data)

        if offline_support:
            await self._enqueue(endpoint, method, body, priority)
            logger.warning(
                "[%s] Server error, queued operation (%s %s) for retry",
                status_to_error_code(response.status).value,
                method,
                endpoint,
            )
        return OperationResult(success=False, error=response.error or "Server error")

    async def post(self, endpoint: str, body: Any = None, **options) -> OperationResult:
        return await self.perform_operation(endpoint, "POST", body, **options)

    async def put(self, endpoint: str, body: Any = None, **options) -> OperationResult:
        return await self.perform_operation(endpoint, "PUT", body, **options)

    async def delete(self, endpoint: str, **options) -> OperationResult:
        return await self.perform_operation(endpoint, "DELETE", {}, **options)

    async def _send(self, endpoint: str, method: str, body: Any):
        payload = None if method == "DELETE" else body
        return await self.api.request(endpoint, method, payload)

    async def _enqueue(self, endpoint: str, method: str, body: Any, priority: str) -> PendingOperation:
        await self._ensure_loaded()
        op = PendingOperation.create(endpoint, method, body, timestamp=self._clock(), priority=priority)
        self._queue.append(op)
        await self._persist()
        return op

    async def _persist(self) -> None:
        try:
            saved = await self.store.save(list(self._queue))
        except Exception as exc:
            logger.error("[%s] Failed to save pending operations: %s", ErrorCode.DATA_SYNC_FAILED.value, exc)
            return
        if not saved:
            logger.error(
                "[%s] Pending operations kept in memory only (%d items)",
                ErrorCode.DATA_SYNC_FAILED.value,
                len(self._queue),
            )

    async def _update_local_mirror(self, sync_target: str, data: Any) -> None:
        if self.mirror is None:
            return
        try:
            await self.mirror.upsert(sync_target, data)
        except Exception as exc:
            logger.error("Error updating local mirror: %s", exc)

    # ------------------------------------------------------------------
    # Replay
    async def sync_pending_operations(self) -> Optional[SyncReport]:
        if self._sync_in_progress:
            logger.info("Sync already in progress, skipping")
            return None
        if not self._online:
            logger.info("Cannot sync, device is offline")
            return None
        now = self._clock()
        if now - self._last_sync_attempt < self.min_sync_interval_ms:
            logger.info("Skipping sync, too soon after last attempt")
            return None

        self._sync_in_progress = True
        self._last_sync_attempt = now
        try:
            await self._ensure_loaded()
            return await self._run_sync_pass(now)
        except Exception:
            logger.exception("[%s] Error during sync", ErrorCode.SYNC_FAILED.value)
            return None
        finally:
            self._sync_in_progress = False

    async def _run_sync_pass(self, now: int) -> SyncReport:
        logger.info("Starting sync of %d pending operations", len(self._queue))
        report = SyncReport()

        self._queue.sort(key=replay_key)
        snapshot = list(self._queue)
        succeeded: Set[str] = set()
        dropped: List[PendingOperation] = []

        for op in snapshot:
            if is_exhausted(op, self.max_retry_attempts):
                logger.info("Operation %s exceeded max retry attempts, removing", op.id)
                dropped.append(op)
                continue
            if not is_due(op, now, self.retry_backoff_ms):
                logger.debug("Operation %s waiting for backoff", op.id)
                report.skipped += 1
                continue

            report.attempted += 1
            if await self._attempt(op):
                succeeded.add(op.id)
            else:
                op.retry_count += 1
                op.timestamp = now
                if is_exhausted(op, self.max_retry_attempts):
                    dropped.append(op)

            await self._sleep(self.inter_operation_delay_ms / 1000)

        removed = succeeded | {op.id for op in dropped}
        # Rebuilt from the live list so operations enqueued mid-pass survive.
        self._queue = [op for op in self._queue if op.id not in removed]
        await self._persist()

        report.succeeded = len(succeeded)
        report.failed = len(dropped)
        report.remaining = len(self._queue)
        report.dropped_ids = [op.id for op in dropped]
        for op in dropped:
            self._record_permanent_failure(op)

        logger.info(
            "Sync completed: %d succeeded, %d failed, %d pending",
            report.succeeded,
            report.failed,
            report.remaining,
        )
        return report

    async def _attempt(self, op: PendingOperation) -> bool:
        logger.info("Executing operation: %s %s", op.method, op.endpoint)
        try:
            response = await self._send(op.endpoint, op.method, op.body)
        except Exception as exc:
            logger.error("[%s] Error executing operation %s: %s", ErrorCode.NETWORK_REQUEST_FAILED.value, op.id, exc)
            return False
        if response.ok:
            logger.info("Operation %s succeeded", op.id)
            return True
        logger.warning(
            "[%s] Operation %s failed: %s",
            status_to_error_code(response.status).value,
            op.id,
            response.error,
        )
        return False

    async def manual_sync(self) -> bool:
        if not self._online:
            logger.info("Cannot sync, device is offline")
            return False
        if self._sync_in_progress:
            logger.info("Sync already in progress")
            return False
        await self.sync_pending_operations()
        return True

    # ------------------------------------------------------------------
    # Permanent failures
    def subscribe_permanent_failure(self, callback: FailureListener) -> Callable[[], None]:
        self._failure_listeners.add(callback)

        def unsubscribe() -> None:
            self._failure_listeners.discard(callback)

        return unsubscribe

    def _record_permanent_failure(self, op: PendingOperation) -> None:
        self._failed.append(replace(op))
        for listener in list(self._failure_listeners):
            try:
                listener(replace(op))
            except Exception:
                logger.exception("Permanent failure listener %r failed", listener)

    def permanently_failed_operations(self) -> List[PendingOperation]:
        return [replace(op) for op in self._failed]

    # ------------------------------------------------------------------
    # Queries
    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def sync_in_progress(self) -> bool:
        return self._sync_in_progress

    def get_pending_operations_count(self) -> int:
        return len(self._queue)

    def has_high_priority_pending_operations(self) -> bool:
        return any(op.priority == "high" for op in self._queue)

    def pending_operations(self) -> List[PendingOperation]:
        return [replace(op) for op in self._queue]

    def status(self) -> dict:
        return {
            "online": self._online,
            "queueSize": len(self._queue),
            "hasHighPriority": self.has_high_priority_pending_operations(),
            "syncInProgress": self._sync_in_progress,
            "lastSyncAttemptAt": epoch_ms_to_rfc3339(self._last_sync_attempt) if self._last_sync_attempt else None,
            "permanentlyFailed": len(self._failed),
        }


__all__ = ["ReliabilityLayer", "OperationResult", "SyncReport"]
