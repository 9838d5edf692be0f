"""Logger setup shared by the sync services."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.settings import LOGGING

ROOT_LOGGER = "syncfit"


def ensure_logger(path: Optional[Path] = None) -> logging.Logger:
    """Attach the rotating sync log to the ``syncfit`` logger once."""
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        target = Path(path or LOGGING.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            target,
            maxBytes=LOGGING.max_bytes,
            backupCount=LOGGING.backup_count,
            encoding="utf-8",
        )
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    ensure_logger()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


__all__ = ["ROOT_LOGGER", "ensure_logger", "get_logger"]
