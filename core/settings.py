"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``SYNCFIT_DATA_DIR`` in the environment wins over the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("SYNCFIT_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "SyncFit"
APP_VERSION = "1.0.0"


DATA_DIR = get_default_data_dir(APP_NAME)
STORAGE_DIR = DATA_DIR / "storage"
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, STORAGE_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "syncfit.db"
CONFIG_PATH = DATA_DIR / "config.json"
QUEUE_FILE_PATH = STORAGE_DIR / "pending_operations.json"
SYNC_LOG_PATH = LOG_DIR / "sync.log"


@dataclass(frozen=True)
class ReliabilitySettings:
    max_retry_attempts: int = 5
    retry_backoff_ms: int = 1000
    min_sync_interval_ms: int = 5000
    inter_operation_delay_ms: int = 100
    storage_key: str = "syncfit_pending_operations"
    failed_history_limit: int = 50


RELIABILITY = ReliabilitySettings()


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = os.environ.get("SYNCFIT_API_URL", "https://api.syncfitapp.com")
    timeout_sec: float = 10.0
    client_version: str = APP_VERSION
    client_platform: str = sys.platform


API = ApiSettings()


@dataclass(frozen=True)
class NetworkSettings:
    probe_url: str = "https://clients3.google.com/generate_204"
    link_check_host: str = "1.1.1.1"
    link_check_port: int = 53
    timeout_sec: float = 5.0
    poll_interval_sec: int = 15


NETWORK = NetworkSettings()


@dataclass(frozen=True)
class HealthSettings:
    interval_sec: int = 60


HEALTH = HealthSettings()


@dataclass(frozen=True)
class LogSettings:
    path: Path = SYNC_LOG_PATH
    max_bytes: int = 1_000_000
    backup_count: int = 3


LOGGING = LogSettings()


__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "DATA_DIR",
    "STORAGE_DIR",
    "LOG_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "QUEUE_FILE_PATH",
    "SYNC_LOG_PATH",
    "RELIABILITY",
    "API",
    "NETWORK",
    "HEALTH",
    "LOGGING",
    "get_default_data_dir",
]
