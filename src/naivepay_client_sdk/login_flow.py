from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .error_mapper import CREDENTIAL_CODES, DEVICE_TRUST_CODES
from .exceptions import ApiError
from .navigation import DEVICE_RECOVERY_ROUTE, ROOT_ROUTE
from .session_manager import AuthSessionService, LogoutReason

BLOCKED_NOTICE = (
    "Tu cuenta ha sido bloqueada por seguridad. "
    "Te enviamos un correo con instrucciones para recuperarla."
)
FRIENDLY_MESSAGES = {
    "USER_NOT_FOUND": "USUARIO NO EXISTE",
    "DEVICE_UNAUTHORIZED": "DISPOSITIVO NO AUTORIZADO",
    "DEVICE_REQUIRED": "DISPOSITIVO REQUERIDO",
}
DEFAULT_FAILURE_MESSAGE = "CREDENCIALES INVALIDAS"
NETWORK_FAILURE_MESSAGE = "No hay conexion con el servidor. Intenta nuevamente."


class LoginErrorKind(str, Enum):
    CREDENTIALS = "credentials"
    ACCOUNT_BLOCKED = "account_blocked"
    DEVICE_TRUST = "device_trust"
    NETWORK = "network"
    OTHER = "other"


def classify_login_error(error: ApiError) -> LoginErrorKind:
    if error.code in CREDENTIAL_CODES:
        return LoginErrorKind.CREDENTIALS
    if error.code == "ACCOUNT_BLOCKED":
        return LoginErrorKind.ACCOUNT_BLOCKED
    if error.code in DEVICE_TRUST_CODES:
        return LoginErrorKind.DEVICE_TRUST
    if error.status_code == 0:
        return LoginErrorKind.NETWORK
    return LoginErrorKind.OTHER


def reason_message(reason: str | None) -> tuple[str, str]:
    """Banner shown on the login screen for a redirect ``reason``."""
    if reason in {LogoutReason.SESSION_CLOSED.value, "token_expired"}:
        return "err", "Tu sesion expiro. Inicia sesion nuevamente."
    if reason == LogoutReason.LOGOUT_OK.value:
        return "ok", "Sesion cerrada correctamente."
    return "", ""


@dataclass(frozen=True)
class LoginOutcome:
    success: bool
    message: str = ""
    message_type: str = ""
    remaining_attempts: int | None = None
    error_kind: LoginErrorKind | None = None
    blocked_notice: str | None = None
    redirect: str | None = None
    query: dict[str, str] = field(default_factory=dict)


class LoginController:
    def __init__(self, session: AuthSessionService, *, max_attempts: int | None = None) -> None:
        self._session = session
        self.max_attempts = max_attempts or session.config.max_login_attempts
        self.remaining_attempts = self.max_attempts
        self.loading = False

    def submit(self, identifier: str, password: str) -> LoginOutcome:
        identifier = (identifier or "").strip()
        if not identifier or not password or self.loading:
            return LoginOutcome(success=False, remaining_attempts=self.remaining_attempts)
        self.loading = True
        try:
            self._session.login(identifier, password)
        except ApiError as exc:
            return self._failure(exc, identifier)
        finally:
            self.loading = False
        self.remaining_attempts = self.max_attempts
        if self._session.is_authenticated:
            self._session.navigator.navigate(ROOT_ROUTE)
        return LoginOutcome(success=True, remaining_attempts=self.remaining_attempts, redirect=ROOT_ROUTE)

    def _failure(self, error: ApiError, identifier: str) -> LoginOutcome:
        kind = classify_login_error(error)
        if kind is LoginErrorKind.CREDENTIALS and error.code == "BAD_CREDENTIALS":
            backend_remaining = error.remaining_attempts
            if backend_remaining is not None:
                self.remaining_attempts = backend_remaining
            else:
                self.remaining_attempts = max(self.remaining_attempts - 1, 0)
            return LoginOutcome(
                success=False,
                message=f"{DEFAULT_FAILURE_MESSAGE}\nTe quedan {self.remaining_attempts} intentos",
                message_type="err",
                remaining_attempts=self.remaining_attempts,
                error_kind=kind,
            )
        if kind is LoginErrorKind.ACCOUNT_BLOCKED:
            self.remaining_attempts = 0
            return LoginOutcome(
                success=False,
                message="CUENTA BLOQUEADA",
                message_type="err",
                remaining_attempts=0,
                error_kind=kind,
                blocked_notice=BLOCKED_NOTICE,
            )
        if kind is LoginErrorKind.DEVICE_TRUST:
            self._session.navigator.navigate(DEVICE_RECOVERY_ROUTE, {"id": identifier})
            return LoginOutcome(
                success=False,
                message=FRIENDLY_MESSAGES[error.code],
                message_type="err",
                remaining_attempts=self.remaining_attempts,
                error_kind=kind,
                redirect=DEVICE_RECOVERY_ROUTE,
                query={"id": identifier},
            )
        if kind is LoginErrorKind.NETWORK:
            message = NETWORK_FAILURE_MESSAGE
        else:
            message = FRIENDLY_MESSAGES.get(error.code, DEFAULT_FAILURE_MESSAGE)
        return LoginOutcome(
            success=False,
            message=message,
            message_type="err",
            remaining_attempts=self.remaining_attempts,
            error_kind=kind,
        )
