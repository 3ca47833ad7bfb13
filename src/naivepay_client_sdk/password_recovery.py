from __future__ import annotations

import re
from enum import Enum

from .clients.auth import AuthClient
from .exceptions import ApiError

MIN_PASSWORD_LENGTH = 8

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CODE_PATTERN = re.compile(r"^\d{6}$")

REQUEST_FAILED_MESSAGE = "Error al enviar codigo. Intenta nuevamente."
REQUEST_ERROR_MESSAGES = {
    "INVALID_EMAIL": "Ingresa un correo valido",
    "TOO_MANY_REQUESTS": "Demasiados intentos. Espera unos minutos e intenta nuevamente.",
}
VERIFY_ERROR_MESSAGES = {
    "INVALID_CODE": "Codigo invalido o expirado",
    "CODE_EXPIRED": "El codigo ha expirado (10 minutos)",
    "CODE_ALREADY_USED": "Este codigo ya fue utilizado",
}
RESET_ERROR_MESSAGES = {
    **VERIFY_ERROR_MESSAGES,
    "PASSWORD_TOO_SHORT": "La contrasena debe tener al menos 8 caracteres",
}


class PasswordRecoveryStep(int, Enum):
    EMAIL = 1
    CODE = 2
    RESET = 3
    DONE = 4


class PasswordRecoveryFlow:
    def __init__(self, auth: AuthClient) -> None:
        self._auth = auth
        self.step = PasswordRecoveryStep.EMAIL
        self.email = ""
        self.code = ""
        self.message = ""
        self.message_type = ""
        self.loading = False

    def _fail(self, message: str) -> bool:
        self.message_type = "err"
        self.message = message
        return False

    def _reset_message(self) -> None:
        self.message = ""
        self.message_type = ""

    def request_code(self, email: str) -> bool:
        email = (email or "").strip()
        if self.loading or not _EMAIL_PATTERN.match(email):
            return False
        self.loading = True
        self._reset_message()
        try:
            response = self._auth.request_password_recovery(email)
        except ApiError as exc:
            return self._fail(REQUEST_ERROR_MESSAGES.get(exc.code, REQUEST_FAILED_MESSAGE))
        finally:
            self.loading = False
        self.email = email
        self.message_type = "ok"
        self.message = response.message
        self.step = PasswordRecoveryStep.CODE
        return True

    def verify_code(self, code: str) -> bool:
        code = (code or "").strip()
        if self.loading or self.step is not PasswordRecoveryStep.CODE or not _CODE_PATTERN.match(code):
            return False
        self.loading = True
        self._reset_message()
        try:
            self._auth.verify_recovery_code(self.email, code)
        except ApiError as exc:
            return self._fail(
                VERIFY_ERROR_MESSAGES.get(exc.code, "No pudimos validar el codigo. Intenta nuevamente.")
            )
        finally:
            self.loading = False
        self.code = code
        self.step = PasswordRecoveryStep.RESET
        return True

    def reset_password(self, new_password: str, confirm_password: str) -> bool:
        if self.loading or self.step is not PasswordRecoveryStep.RESET:
            return False
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return self._fail(RESET_ERROR_MESSAGES["PASSWORD_TOO_SHORT"])
        if new_password != confirm_password:
            return self._fail("Las contrasenas no coinciden")
        self.loading = True
        self._reset_message()
        try:
            self._auth.reset_password(self.email, self.code, new_password)
        except ApiError as exc:
            return self._fail(
                RESET_ERROR_MESSAGES.get(exc.code, "Error al cambiar contrasena. Verifica el codigo.")
            )
        finally:
            self.loading = False
        self.step = PasswordRecoveryStep.DONE
        return True
