"""Durable storage for the pending-operations queue.

The queue is always persisted as one blob under one key and replaced
wholesale on every save. Both stores swallow their own failures: ``load``
falls back to an empty queue and ``save`` reports ``False``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from core.error_codes import ErrorCode
from core.logs import get_logger
from core.settings import QUEUE_FILE_PATH, RELIABILITY
from datetime_utils import utc_now
from models.kv_entry import KeyValueEntry
from models.pending_op import PendingOperation
from storage.config import write_atomic
from storage.queue_codec import QueueDecodeError, decode_queue, encode_queue


logger = get_logger("queue_store")


class QueueStore:
    """Interface of a durable queue store."""

    async def load(self) -> List[PendingOperation]:
        raise NotImplementedError

    async def save(self, operations: Sequence[PendingOperation]) -> bool:
        raise NotImplementedError


class SqlQueueStore(QueueStore):
    """Keeps the queue blob in the ``keyvalueentry`` table."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        key: str = RELIABILITY.storage_key,
    ) -> None:
        if session_factory is None:
            from storage.db import get_session

            session_factory = get_session
        self.session_factory = session_factory
        self.key = key

    async def load(self) -> List[PendingOperation]:
        try:
            with self.session_factory() as session:
                entry = session.get(KeyValueEntry, self.key)
                raw = entry.value if entry else None
        except SQLAlchemyError as exc:
            logger.error("[%s] Failed to read pending operations: %s", ErrorCode.DATA_SYNC_FAILED.value, exc)
            return []
        if not raw:
            return []
        try:
            operations = decode_queue(raw)
        except QueueDecodeError as exc:
            logger.error("[%s] Stored queue is unreadable: %s", ErrorCode.DATA_PARSE_FAILED.value, exc)
            return []
        logger.info("Loaded %d pending operations", len(operations))
        return operations

    async def save(self, operations: Sequence[PendingOperation]) -> bool:
        try:
            payload = encode_queue(operations)
        except (TypeError, ValueError) as exc:
            logger.error("[%s] Pending operations are not serializable: %s", ErrorCode.DATA_PARSE_FAILED.value, exc)
            return False
        try:
            with self.session_factory() as session:
                entry = session.get(KeyValueEntry, self.key)
                if entry is None:
                    entry = KeyValueEntry(key=self.key, value=payload)
                else:
                    entry.value = payload
                    entry.updated_at = utc_now()
                session.add(entry)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("[%s] Failed to save pending operations: %s", ErrorCode.DATA_SYNC_FAILED.value, exc)
            return False
        return True


class JsonFileQueueStore(QueueStore):
    """Keeps the queue blob in a single JSON file."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path or QUEUE_FILE_PATH)

    async def load(self) -> List[PendingOperation]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.error("[%s] Failed to read %s: %s", ErrorCode.DATA_SYNC_FAILED.value, self.path, exc)
            return []
        if not raw.strip():
            return []
        try:
            operations = decode_queue(raw)
        except QueueDecodeError as exc:
            logger.error("[%s] Stored queue is unreadable: %s", ErrorCode.DATA_PARSE_FAILED.value, exc)
            return []
        logger.info("Loaded %d pending operations", len(operations))
        return operations

    async def save(self, operations: Sequence[PendingOperation]) -> bool:
        try:
            payload = encode_queue(operations)
        except (TypeError, ValueError) as exc:
            logger.error("[%s] Pending operations are not serializable: %s", ErrorCode.DATA_PARSE_FAILED.value, exc)
            return False
        try:
            write_atomic(self.path, payload)
        except OSError as exc:
            logger.error("[%s] Failed to save %s: %s", ErrorCode.DATA_SYNC_FAILED.value, self.path, exc)
            return False
        return True


__all__ = ["QueueStore", "SqlQueueStore", "JsonFileQueueStore"]
