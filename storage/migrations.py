"""Ad-hoc database migrations for SyncFit."""

from __future__ import annotations

from sqlalchemy import text


def ensure_mirror_indexes(conn) -> None:
    conn.execute(
        text(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS ux_mirrordocument_collection_doc
            ON mirrordocument (collection, doc_id)
            """
        )
    )


def run_all(engine) -> None:
    with engine.begin() as conn:
        ensure_mirror_indexes(conn)


__all__ = ["run_all"]
