"""Deferred mutating request waiting to be replayed against the API."""

from __future__ import annotations

import secrets
import string
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from core.priorities import DEFAULT_PRIORITY, is_valid_priority


VALID_METHODS = ("POST", "PUT", "DELETE")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def make_operation_id(method: str, endpoint: str, timestamp: int) -> str:
    return f"{method}_{endpoint}_{timestamp}_{_random_suffix()}"


@dataclass
class PendingOperation:
    id: str
    endpoint: str
    method: str
    body: Any
    timestamp: int
    retry_count: int = 0
    priority: str = DEFAULT_PRIORITY

    @classmethod
    def create(
        cls,
        endpoint: str,
        method: str,
        body: Any,
        *,
        timestamp: int,
        priority: str = DEFAULT_PRIORITY,
    ) -> "PendingOperation":
        return cls(
            id=make_operation_id(method, endpoint, timestamp),
            endpoint=endpoint,
            method=method,
            body=body,
            timestamp=timestamp,
            retry_count=0,
            priority=priority,
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional["PendingOperation"]:
        """Build an operation from a persisted record; ``None`` if it is unusable."""
        if not isinstance(record, dict):
            return None
        op_id = record.get("id")
        endpoint = record.get("endpoint")
        method = str(record.get("method") or "").upper()
        if not op_id or not endpoint or method not in VALID_METHODS:
            return None
        priority = record.get("priority") or DEFAULT_PRIORITY
        if not is_valid_priority(priority):
            priority = DEFAULT_PRIORITY
        try:
            timestamp = int(record.get("timestamp") or 0)
            retry_count = max(0, int(record.get("retry_count") or 0))
        except (TypeError, ValueError):
            return None
        return cls(
            id=str(op_id),
            endpoint=str(endpoint),
            method=method,
            body=record.get("body"),
            timestamp=timestamp,
            retry_count=retry_count,
            priority=priority,
        )


__all__ = ["PendingOperation", "VALID_METHODS", "make_operation_id"]
