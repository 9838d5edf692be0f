"""SQLModel table for the local read mirror of remote documents."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from datetime_utils import utc_now


class MirrorDocument(SQLModel, table=True):
    """A remote document cached locally so it can be read while offline."""

    id: Optional[int] = Field(default=None, primary_key=True)
    collection: str = Field(index=True)
    doc_id: str = Field(index=True)
    data: str
    local_timestamp: datetime = Field(default_factory=utc_now)


__all__ = ["MirrorDocument"]
