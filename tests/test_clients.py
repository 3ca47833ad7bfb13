from __future__ import annotations

import pytest
import responses

from conftest import API
from naivepay_client_sdk.clients.auth import AuthClient
from naivepay_client_sdk.clients.devices import DevicesClient
from naivepay_client_sdk.config import ClientConfig
from naivepay_client_sdk.exceptions import ServerError
from naivepay_client_sdk.http_client import HttpClient
from naivepay_client_sdk.models import Device, MessageResponse


def _retrying_http() -> HttpClient:
    return HttpClient(ClientConfig(env_name="test", api_base_url=API, retries=2, retry_backoff_seconds=0))


@responses.activate
def test_get_is_retried_on_5xx() -> None:
    responses.add(responses.GET, f"{API}/auth/session-status", status=503, json={"error": "UNAVAILABLE"})
    responses.add(responses.GET, f"{API}/auth/session-status", json={"minutesRemaining": 7})

    status = AuthClient(http=_retrying_http(), access_token="tok").session_status()

    assert status.effective_minutes == 7
    assert len(responses.calls) == 2
    assert responses.calls[0].request.headers["Authorization"] == "Bearer tok"


@responses.activate
def test_post_is_not_retried() -> None:
    responses.add(responses.POST, f"{API}/auth/logout", status=502, headers={"X-Trace-ID": "tr-9"})
    http = _retrying_http()

    with pytest.raises(ServerError) as excinfo:
        AuthClient(http=http, access_token="tok").logout()

    assert excinfo.value.trace_id == "tr-9"
    assert len(responses.calls) == 1
    assert http.last_operation is not None
    assert http.last_operation.operation == "logout"
    assert http.last_operation.status_code == 502


@responses.activate
def test_devices_endpoints(config, device) -> None:
    responses.add(
        responses.GET,
        f"{API}/api/devices/current",
        json={
            "id": 7,
            "userId": 3,
            "fingerprint": "fp-1",
            "type": "DESKTOP",
            "os": "Windows",
            "browser": "Chrome",
            "registeredAt": "2026-03-01T10:00:00",
        },
    )
    responses.add(responses.GET, f"{API}/api/devices/current", json={"message": "No hay dispositivo registrado"})
    responses.add(
        responses.GET,
        f"{API}/api/devices/logs",
        json=[{"userId": 3, "action": "LOGIN", "result": "OK", "createdAt": "2026-03-01T10:00:00"}],
    )
    responses.add(responses.DELETE, f"{API}/api/devices/unlink", body="Dispositivo desvinculado")
    client = DevicesClient(http=HttpClient(config), access_token="tok", device=device)

    current = client.current()
    missing = client.current()
    logs = client.logs()
    client.unlink()

    assert isinstance(current, Device)
    assert current.user_id == 3
    assert isinstance(missing, MessageResponse)
    assert logs[0].action == "LOGIN"
    assert responses.calls[-1].request.headers["X-Device-Browser"] == "Chrome"
