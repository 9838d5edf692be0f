"""Versioned envelope for the persisted pending-operations blob."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List

from models.pending_op import PendingOperation


QUEUE_SCHEMA_VERSION = 2

logger = logging.getLogger("syncfit.queue_codec")

# v1 records were written by the first client release with camelCase keys.
_LEGACY_KEYS = {"retryCount": "retry_count"}


class QueueDecodeError(ValueError):
    """Raised when a stored blob cannot be interpreted at all."""


def _migrate_v1(data: List[Any]) -> Dict[str, Any]:
    operations = []
    for record in data:
        if isinstance(record, dict):
            record = {_LEGACY_KEYS.get(key, key): value for key, value in record.items()}
        operations.append(record)
    return {"version": 2, "operations": operations}


def migrate_envelope(data: Any) -> Dict[str, Any]:
    """Upgrade any known stored shape to the current envelope."""
    if isinstance(data, list):
        data = _migrate_v1(data)
    if not isinstance(data, dict):
        raise QueueDecodeError(f"Unexpected queue payload type: {type(data).__name__}")

    version = data.get("version")
    if not isinstance(version, int):
        raise QueueDecodeError("Queue envelope has no version")
    if version > QUEUE_SCHEMA_VERSION:
        logger.warning(
            "Queue envelope version %s is newer than %s; reading known fields only",
            version,
            QUEUE_SCHEMA_VERSION,
        )
    operations = data.get("operations")
    if not isinstance(operations, list):
        raise QueueDecodeError("Queue envelope has no operations list")
    return {"version": QUEUE_SCHEMA_VERSION, "operations": operations}


def encode_queue(operations: Iterable[PendingOperation]) -> str:
    envelope = {
        "version": QUEUE_SCHEMA_VERSION,
        "operations": [op.to_record() for op in operations],
    }
    return json.dumps(envelope, ensure_ascii=False)


def decode_queue(raw: str) -> List[PendingOperation]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise QueueDecodeError(str(exc)) from exc

    envelope = migrate_envelope(data)
    result: List[PendingOperation] = []
    for record in envelope["operations"]:
        op = PendingOperation.from_record(record)
        if op is None:
            logger.warning("Skipping malformed pending operation record: %r", record)
            continue
        result.append(op)
    return result


__all__ = [
    "QUEUE_SCHEMA_VERSION",
    "QueueDecodeError",
    "decode_queue",
    "encode_queue",
    "migrate_envelope",
]
