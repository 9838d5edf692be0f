"""Async HTTP client for the SyncFit REST API."""
from __future__ import annotations

import json
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from core.error_codes import ErrorCode, status_to_error_code
from core.logs import get_logger
from core.settings import API


logger = get_logger("api")


@dataclass
class ApiResponse:
    status: int
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _request_id() -> str:
    return secrets.token_hex(13)


def _query_params(data: Any) -> Optional[Dict[str, str]]:
    if not isinstance(data, dict):
        return None
    return {key: str(value) for key, value in data.items() if value is not None}


def _parse_body(response: httpx.Response) -> Any:
    text = response.text
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.error(
            "[%s] Failed to parse API response from %s: %.200s",
            ErrorCode.DATA_PARSE_FAILED.value,
            response.request.url,
            text,
        )
        return {"error": "Invalid response format"}


class ApiClient:
    """Executes single requests and normalizes every outcome to :class:`ApiResponse`.

    Transport failures never raise; they come back with ``status == 0``.
    """

    def __init__(
        self,
        base_url: str = API.base_url,
        *,
        timeout: float = API.timeout_sec,
        headers: Optional[Dict[str, str]] = None,
        network=None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.network = network
        default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Client-Platform": API.client_platform,
            "X-Client-Version": API.client_version,
        }
        default_headers.update(headers or {})
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=default_headers,
        )
        self._owns_client = client is None
        if client is not None:
            client.headers.update(default_headers)

    async def request(self, endpoint: str, method: str = "GET", data: Any = None) -> ApiResponse:
        method = method.upper()
        request_id = _request_id()
        started = time.monotonic()

        if self.network is not None and not self.network.current().connected:
            logger.error("[%s] Network is not available", ErrorCode.NETWORK_OFFLINE.value)
            return ApiResponse(status=0, error="Network is not available")

        kwargs: Dict[str, Any] = {"headers": {"X-Request-ID": request_id}}
        try:
            if method == "GET":
                params = _query_params(data)
                if params:
                    kwargs["params"] = params
            elif data:
                kwargs["content"] = json.dumps(data, ensure_ascii=False)
            response = await self._client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as exc:
            return self._failed(endpoint, method, request_id, started, ErrorCode.NETWORK_TIMEOUT, "Request timed out", exc)
        except httpx.TransportError as exc:
            return self._failed(
                endpoint, method, request_id, started, ErrorCode.NETWORK_REQUEST_FAILED, "Network request failed", exc
            )
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            return self._failed(endpoint, method, request_id, started, ErrorCode.API_REQUEST_FAILED, "Request failed", exc)

        body = _parse_body(response)
        result = ApiResponse(status=response.status_code)
        if response.is_success:
            result.data = body
        else:
            error = body.get("error") if isinstance(body, dict) else None
            result.error = error or "Request failed"

        elapsed_ms = int((time.monotonic() - started) * 1000)
        if result.ok:
            logger.info("%s %s -> %s (%d ms, %s)", method, endpoint, result.status, elapsed_ms, request_id)
        else:
            logger.warning(
                "[%s] %s %s -> %s (%d ms, %s): %s",
                status_to_error_code(result.status).value,
                method,
                endpoint,
                result.status,
                elapsed_ms,
                request_id,
                result.error,
            )
        return result

    def _failed(self, endpoint, method, request_id, started, code: ErrorCode, message: str, exc) -> ApiResponse:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.error(
            "[%s] API request failed: %s %s (%d ms, %s): %s",
            code.value,
            method,
            endpoint,
            elapsed_ms,
            request_id,
            exc,
        )
        return ApiResponse(status=0, error=message)

    async def get(self, endpoint: str, params: Any = None) -> ApiResponse:
        return await self.request(endpoint, "GET", params)

    async def post(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request(endpoint, "POST", data)

    async def put(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request(endpoint, "PUT", data)

    async def delete(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request(endpoint, "DELETE", data)

    async def patch(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request(endpoint, "PATCH", data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["ApiClient", "ApiResponse"]
