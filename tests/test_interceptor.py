from __future__ import annotations

import pytest
import responses

from conftest import API
from naivepay_client_sdk.auth_store import MemoryAuthStore
from naivepay_client_sdk.exceptions import AuthError, RecoveryCodeError, TransportError
from naivepay_client_sdk.http_client import HttpClient
from naivepay_client_sdk.interceptor import SessionInterceptor
from naivepay_client_sdk.models import SessionData


def _client(config, device, unauthorized: list[bool]) -> tuple[HttpClient, MemoryAuthStore]:
    store = MemoryAuthStore()
    store.save(SessionData(access_token="tok-1"))
    http = HttpClient(config)
    SessionInterceptor(store, device, on_unauthorized=lambda: unauthorized.append(True)).install(http)
    return http, store


@responses.activate
def test_private_requests_carry_bearer_and_fingerprint(config, device) -> None:
    responses.add(responses.GET, f"{API}/api/devices/current", json={"message": "ok"})
    http, _store = _client(config, device, [])

    http.request("GET", "/api/devices/current")

    headers = responses.calls[0].request.headers
    assert headers["Authorization"] == "Bearer tok-1"
    assert headers["X-Device-Fingerprint"] == device.get_fingerprint()


@responses.activate
def test_public_requests_skip_bearer(config, device) -> None:
    responses.add(responses.POST, f"{API}/auth/login", json={"accessToken": "x"})
    responses.add(responses.POST, f"{API}/api/devices/recover/request", json={"recoveryId": "r"})
    http, _store = _client(config, device, [])

    http.request("POST", "/auth/login", json_body={})
    http.request("POST", "/api/devices/recover/request", json_body={})

    for call in responses.calls:
        assert "Authorization" not in call.request.headers
        assert call.request.headers["X-Device-Fingerprint"] == device.get_fingerprint()


@responses.activate
def test_explicit_authorization_is_not_replaced(config, device) -> None:
    responses.add(responses.POST, f"{API}/auth/logout", body="Sesion cerrada")
    http, _store = _client(config, device, [])

    assert http.request("POST", "/auth/logout", headers={"Authorization": "Bearer old"}) is None
    assert responses.calls[0].request.headers["Authorization"] == "Bearer old"


@responses.activate
def test_unauthorized_response_triggers_callback(config, device) -> None:
    responses.add(responses.GET, f"{API}/api/devices/logs", status=401, json={"error": "TOKEN_EXPIRED"})
    unauthorized: list[bool] = []
    http, _store = _client(config, device, unauthorized)

    with pytest.raises(AuthError) as excinfo:
        http.request("GET", "/api/devices/logs")
    assert excinfo.value.status_code == 401
    assert unauthorized == [True]


@responses.activate
def test_recovery_unauthorized_is_left_to_the_flow(config, device) -> None:
    responses.add(responses.POST, f"{API}/api/devices/recover/verify", status=401, json={"error": "RECOVERY_INVALID"})
    unauthorized: list[bool] = []
    http, _store = _client(config, device, unauthorized)

    with pytest.raises(RecoveryCodeError):
        http.request("POST", "/api/devices/recover/verify", json_body={})
    assert unauthorized == []


@responses.activate
def test_network_failure_becomes_transport_error(config, device) -> None:
    http, _store = _client(config, device, [])
    with pytest.raises(TransportError) as excinfo:
        http.request("GET", "/auth/session-status")
    assert excinfo.value.status_code == 0
    assert http.last_operation is not None
    assert http.last_operation.result == "network_error"
