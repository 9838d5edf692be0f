"""Error codes attached to log lines for diagnostics."""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    AUTH_REQUIRED = "AUTH_001"
    AUTH_INVALID_TOKEN = "AUTH_003"

    API_BAD_REQUEST = "API_001"
    API_NOT_FOUND = "API_002"
    API_RATE_LIMITED = "API_003"
    API_SERVER_ERROR = "API_004"
    API_REQUEST_FAILED = "API_005"

    NETWORK_OFFLINE = "NET_001"
    NETWORK_TIMEOUT = "NET_002"
    NETWORK_REQUEST_FAILED = "NET_003"

    DATA_PARSE_FAILED = "DATA_002"
    DATA_SYNC_FAILED = "DATA_003"

    SYNC_FAILED = "GEN_002"
    UNEXPECTED_ERROR = "GEN_001"


_STATUS_CODES = {
    400: ErrorCode.API_BAD_REQUEST,
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.AUTH_INVALID_TOKEN,
    404: ErrorCode.API_NOT_FOUND,
    429: ErrorCode.API_RATE_LIMITED,
    500: ErrorCode.API_SERVER_ERROR,
    502: ErrorCode.API_SERVER_ERROR,
    503: ErrorCode.API_SERVER_ERROR,
    504: ErrorCode.API_SERVER_ERROR,
}


def status_to_error_code(status: int) -> ErrorCode:
    if status == 0:
        return ErrorCode.NETWORK_REQUEST_FAILED
    return _STATUS_CODES.get(status, ErrorCode.API_REQUEST_FAILED)


__all__ = ["ErrorCode", "status_to_error_code"]
