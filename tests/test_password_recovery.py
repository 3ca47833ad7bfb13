from __future__ import annotations

import json

import responses

from conftest import API
from naivepay_client_sdk.clients.auth import AuthClient
from naivepay_client_sdk.http_client import HttpClient
from naivepay_client_sdk.password_recovery import PasswordRecoveryFlow, PasswordRecoveryStep


def _flow(config) -> PasswordRecoveryFlow:
    return PasswordRecoveryFlow(AuthClient(http=HttpClient(config)))


@responses.activate
def test_full_password_recovery(config) -> None:
    responses.add(responses.POST, f"{API}/auth/password/request", json={"message": "Codigo enviado"})
    responses.add(responses.POST, f"{API}/auth/password/verify", json={"message": "ok"})
    responses.add(responses.POST, f"{API}/auth/password/reset", json={"message": "Contrasena actualizada"})
    flow = _flow(config)

    assert flow.request_code("user@example.com")
    assert flow.message == "Codigo enviado"
    assert flow.verify_code("123456")
    assert flow.reset_password("new-secret-1", "new-secret-1")

    assert flow.step is PasswordRecoveryStep.DONE
    assert json.loads(responses.calls[-1].request.body) == {
        "email": "user@example.com",
        "code": "123456",
        "newPassword": "new-secret-1",
    }


def test_local_validation_blocks_requests(config) -> None:
    flow = _flow(config)
    assert flow.request_code("not-an-email") is False
    assert flow.verify_code("123456") is False
    assert flow.step is PasswordRecoveryStep.EMAIL


@responses.activate
def test_backend_codes_map_to_messages(config) -> None:
    responses.add(responses.POST, f"{API}/auth/password/request", json={"message": "Codigo enviado"})
    responses.add(responses.POST, f"{API}/auth/password/verify", status=400, json={"error": "CODE_ALREADY_USED"})
    flow = _flow(config)
    flow.request_code("user@example.com")

    assert flow.verify_code("12345") is False
    assert len(responses.calls) == 1
    assert flow.verify_code("123456") is False
    assert flow.message == "Este codigo ya fue utilizado"
    assert flow.message_type == "err"
    assert flow.step is PasswordRecoveryStep.CODE


@responses.activate
def test_reset_requires_matching_long_password(config) -> None:
    responses.add(responses.POST, f"{API}/auth/password/request", json={})
    responses.add(responses.POST, f"{API}/auth/password/verify", json={})
    flow = _flow(config)
    flow.request_code("user@example.com")
    flow.verify_code("123456")

    assert flow.reset_password("short", "short") is False
    assert flow.message == "La contrasena debe tener al menos 8 caracteres"
    assert flow.reset_password("long-enough-1", "long-enough-2") is False
    assert flow.message == "Las contrasenas no coinciden"
    assert flow.step is PasswordRecoveryStep.RESET


@responses.activate
def test_request_failure_shows_localized_message_only(config) -> None:
    responses.add(
        responses.POST,
        f"{API}/auth/password/request",
        status=500,
        json={"message": "java.lang.IllegalStateException: mail session unavailable"},
    )
    responses.add(responses.POST, f"{API}/auth/password/request", status=429, json={"error": "TOO_MANY_REQUESTS"})
    flow = _flow(config)

    assert flow.request_code("user@example.com") is False
    assert flow.message == "Error al enviar codigo. Intenta nuevamente."
    assert flow.request_code("user@example.com") is False
    assert flow.message == "Demasiados intentos. Espera unos minutos e intenta nuevamente."
    assert flow.step is PasswordRecoveryStep.EMAIL
