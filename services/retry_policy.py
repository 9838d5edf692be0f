"""Backoff and replay ordering for pending operations."""
from __future__ import annotations

from typing import Iterable, List, Tuple

from core.priorities import priority_rank
from core.settings import RELIABILITY
from models.pending_op import PendingOperation


def backoff_delay_ms(retry_count: int, base_ms: int = RELIABILITY.retry_backoff_ms) -> int:
    return base_ms * (2 ** max(retry_count, 0))


def is_exhausted(op: PendingOperation, max_attempts: int = RELIABILITY.max_retry_attempts) -> bool:
    return op.retry_count >= max_attempts


def is_due(op: PendingOperation, now: int, base_ms: int = RELIABILITY.retry_backoff_ms) -> bool:
    """Fresh operations are always due; retried ones wait out their backoff."""
    if op.retry_count <= 0:
        return True
    return now - op.timestamp >= backoff_delay_ms(op.retry_count, base_ms)


def replay_key(op: PendingOperation) -> Tuple[int, int]:
    return (priority_rank(op.priority), op.timestamp)


def replay_order(operations: Iterable[PendingOperation]) -> List[PendingOperation]:
    return sorted(operations, key=replay_key)


__all__ = ["backoff_delay_ms", "is_due", "is_exhausted", "replay_key", "replay_order"]
