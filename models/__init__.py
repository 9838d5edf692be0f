"""ORM models and records exposed by the SyncFit application."""
from .kv_entry import KeyValueEntry
from .mirror_document import MirrorDocument
from .pending_op import PendingOperation

__all__ = ["KeyValueEntry", "MirrorDocument", "PendingOperation"]
