"""Best-effort local cache of documents returned by successful writes."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.logs import get_logger
from datetime_utils import utc_now
from models.mirror_document import MirrorDocument


logger = get_logger("mirror")


def _resolve_target(sync_target: str, data: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """Return ``(collection, doc_id)`` for a sync target, or ``None`` to skip."""
    if sync_target == "calendar":
        event_id = data.get("eventId")
        return ("calendarEvents", str(event_id)) if event_id else None
    doc_id = data.get("id")
    if doc_id is None or doc_id == "":
        return None
    return (sync_target, str(doc_id))


class LocalMirror:
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        if session_factory is None:
            from storage.db import get_session

            session_factory = get_session
        self.session_factory = session_factory

    async def upsert(self, sync_target: str, data: Any) -> bool:
        """Merge ``data`` into the mirrored document. Never raises."""
        try:
            if not isinstance(data, dict):
                logger.debug("Mirror skipped for %s: payload is not a document", sync_target)
                return False
            target = _resolve_target(sync_target, data)
            if target is None:
                logger.debug("Mirror skipped for %s: no document id", sync_target)
                return False
            collection, doc_id = target
            with self.session_factory() as session:
                stmt = select(MirrorDocument).where(
                    MirrorDocument.collection == collection,
                    MirrorDocument.doc_id == doc_id,
                )
                doc = session.exec(stmt).first()
                if doc is None:
                    doc = MirrorDocument(collection=collection, doc_id=doc_id, data="{}")
                merged = json.loads(doc.data or "{}")
                merged.update(data)
                doc.data = json.dumps(merged, ensure_ascii=False)
                doc.local_timestamp = utc_now()
                session.add(doc)
                session.commit()
            return True
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            logger.error("Error updating local mirror for %s: %s", sync_target, exc)
            return False

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.session_factory() as session:
            stmt = select(MirrorDocument).where(
                MirrorDocument.collection == collection,
                MirrorDocument.doc_id == str(doc_id),
            )
            doc = session.exec(stmt).first()
            if doc is None:
                return None
            return json.loads(doc.data)


__all__ = ["LocalMirror"]
