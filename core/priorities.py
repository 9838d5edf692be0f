"""Utility helpers for operation priorities."""
from __future__ import annotations

from typing import Dict

# Lower rank is replayed first.
PRIORITY_RANK: Dict[str, int] = {
    "high": 0,
    "medium": 1,
    "low": 2,
}

DEFAULT_PRIORITY = "medium"


def is_valid_priority(value: object) -> bool:
    return isinstance(value, str) and value in PRIORITY_RANK


def priority_rank(value: str) -> int:
    return PRIORITY_RANK.get(value, PRIORITY_RANK[DEFAULT_PRIORITY])


__all__ = [
    "PRIORITY_RANK",
    "DEFAULT_PRIORITY",
    "is_valid_priority",
    "priority_rank",
]
