import json

import httpx
import pytest

from services.api_client import ApiClient
from services.network_monitor import StaticNetworkMonitor


def _client(handler, **kwargs):
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(base_url="https://api.test", transport=transport)
    return ApiClient("https://api.test", client=http, **kwargs)


@pytest.mark.asyncio
async def test_post_sends_json_and_parses_response():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["headers"] = request.headers
        return httpx.Response(201, json={"id": 12})

    api = _client(handler)
    response = await api.post("/api/scheduled-workouts", {"workoutId": 3})

    assert response.status == 201
    assert response.ok is True
    assert response.data == {"id": 12}
    assert seen["method"] == "POST"
    assert seen["path"] == "/api/scheduled-workouts"
    assert seen["body"] == {"workoutId": 3}
    assert seen["headers"]["content-type"] == "application/json"
    assert seen["headers"]["x-request-id"]
    assert seen["headers"]["x-client-version"]


@pytest.mark.asyncio
async def test_get_turns_data_into_query_params():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    api = _client(handler)
    response = await api.get("/api/workouts", {"category": "yoga", "page": 2, "skip": None})

    assert response.data == []
    assert seen["params"] == {"category": "yoga", "page": "2"}


@pytest.mark.asyncio
async def test_error_status_uses_server_error_message():
    api = _client(lambda request: httpx.Response(409, json={"error": "Slot taken"}))

    response = await api.put("/api/scheduled-workouts/1", {"status": "completed"})

    assert response.status == 409
    assert response.ok is False
    assert response.error == "Slot taken"
    assert response.data is None


@pytest.mark.asyncio
async def test_invalid_json_is_reported_not_raised():
    api = _client(lambda request: httpx.Response(500, text="<html>oops</html>"))

    response = await api.post("/api/a", {"x": 1})

    assert response.status == 500
    assert response.error == "Invalid response format"


@pytest.mark.asyncio
async def test_empty_success_body_becomes_empty_dict():
    api = _client(lambda request: httpx.Response(204))

    response = await api.delete("/api/scheduled-workouts/1")

    assert response.status == 204
    assert response.data == {}


@pytest.mark.asyncio
async def test_transport_errors_normalize_to_status_zero():
    def refused(request):
        raise httpx.ConnectError("connection refused", request=request)

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    refused_response = await _client(refused).post("/api/a", {})
    slow_response = await _client(slow).post("/api/a", {})

    assert (refused_response.status, refused_response.error) == (0, "Network request failed")
    assert (slow_response.status, slow_response.error) == (0, "Request timed out")


@pytest.mark.asyncio
async def test_disconnected_network_short_circuits():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    network = StaticNetworkMonitor()
    network.set_state(False)
    api = _client(handler, network=network)

    response = await api.post("/api/a", {})

    assert response.status == 0
    assert response.error == "Network is not available"
    assert calls == []
