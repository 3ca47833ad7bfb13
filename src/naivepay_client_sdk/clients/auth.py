from __future__ import annotations

from ..device_identity import FINGERPRINT_HEADER
from ..models import LoginRequest, LoginResponse, MessageResponse, SessionStatus
from .base import BaseClient

AUTH_BASE = "/auth"


class AuthClient(BaseClient):
    def login(self, identifier: str, password: str, fingerprint: str) -> LoginResponse:
        payload = LoginRequest(identifier=identifier, password=password).model_dump()
        headers = {FINGERPRINT_HEADER: fingerprint}
        data = self.http.request(
            "POST",
            f"{AUTH_BASE}/login",
            json_body=payload,
            headers=headers,
            module="auth",
            operation="login",
        )
        return LoginResponse.model_validate(data)

    def logout(self) -> None:
        self._request("POST", f"{AUTH_BASE}/logout", json_body={}, module="auth", operation="logout")

    def session_status(self) -> SessionStatus:
        data = self._request("GET", f"{AUTH_BASE}/session-status", module="auth", operation="session_status")
        return SessionStatus.model_validate(data or {})

    def request_password_recovery(self, email: str) -> MessageResponse:
        data = self.http.request(
            "POST",
            f"{AUTH_BASE}/password/request",
            json_body={"email": email},
            module="auth",
            operation="password_request",
        )
        return MessageResponse.model_validate(data or {})

    def verify_recovery_code(self, email: str, code: str) -> MessageResponse:
        data = self.http.request(
            "POST",
            f"{AUTH_BASE}/password/verify",
            json_body={"email": email, "code": code},
            module="auth",
            operation="password_verify",
        )
        return MessageResponse.model_validate(data or {})

    def reset_password(self, email: str, code: str, new_password: str) -> MessageResponse:
        data = self.http.request(
            "POST",
            f"{AUTH_BASE}/password/reset",
            json_body={"email": email, "code": code, "newPassword": new_password},
            module="auth",
            operation="password_reset",
        )
        return MessageResponse.model_validate(data or {})
