from __future__ import annotations

import logging
from enum import Enum

from .clients.devices import DevicesClient
from .exceptions import ApiError
from .navigation import ROOT_ROUTE
from .session_manager import AuthSessionService

logger = logging.getLogger(__name__)

REQUEST_FAILED_MESSAGE = "No se pudo enviar el codigo."
VERIFY_FAILED_MESSAGE = "No se pudo verificar el codigo."

REQUEST_ERROR_MESSAGES = {
    "USER_NOT_FOUND": "No existe una cuenta con ese identificador.",
}

VERIFY_ERROR_MESSAGES = {
    "CODE_INVALID": "Codigo invalido.",
    "INVALID_CODE": "Codigo invalido.",
    "CODE_EXPIRED": "El codigo ha expirado. Solicita uno nuevo.",
    "RECOVERY_EXPIRED": "El codigo ha expirado. Solicita uno nuevo.",
    "CODE_ALREADY_USED": "Este codigo ya fue utilizado.",
    "RECOVERY_INVALID": "La solicitud ya no es valida. Solicita un nuevo codigo.",
    "FINGERPRINT_MISMATCH": "El codigo fue solicitado desde otro dispositivo.",
}


class RecoveryStep(str, Enum):
    REQUEST = "request"
    VERIFY = "verify"
    SUCCESS = "success"


class DeviceRecoveryFlow:
    """Two-step device linking: request a mailed code, then verify it.

    A successful verification installs the returned session on the session
    service and navigates to the application root.
    """

    def __init__(
        self,
        session: AuthSessionService,
        devices: DevicesClient | None = None,
        *,
        identifier: str = "",
    ) -> None:
        self._session = session
        self._devices = devices or session.devices_client()
        self.identifier = identifier
        self.step = RecoveryStep.REQUEST
        self.recovery_id: str | None = None
        self.error: str | None = None
        self.error_code: str | None = None
        self.loading = False
        self._closed = False
        session.begin_device_recovery()

    def request_code(self, identifier: str | None = None) -> bool:
        if identifier is not None:
            self.identifier = identifier
        identifier = (self.identifier or "").strip()
        if not identifier or self.loading or self._closed:
            return False
        self.loading = True
        self.error = None
        self.error_code = None
        # A fresh request always supersedes the previous correlation id.
        self.recovery_id = None
        self.step = RecoveryStep.REQUEST
        logger.info("Requesting device link code")
        try:
            ticket = self._devices.recover_request(identifier)
        except ApiError as exc:
            self.error_code = exc.code
            self.error = REQUEST_ERROR_MESSAGES.get(exc.code, REQUEST_FAILED_MESSAGE)
            logger.warning("Device link code request failed: %s", exc.code)
            return False
        finally:
            self.loading = False
        self.recovery_id = ticket.recovery_id
        self.step = RecoveryStep.VERIFY
        logger.info("Device link code sent")
        return True

    def verify_code(self, code: str, recovery_id: str | None = None) -> bool:
        code = (code or "").strip()
        if self._closed or self.step is not RecoveryStep.VERIFY or not code or self.loading:
            return False
        if not self.recovery_id or (recovery_id is not None and recovery_id != self.recovery_id):
            # Only the most recently issued recovery id may be verified.
            self.error = VERIFY_FAILED_MESSAGE
            self.error_code = None
            logger.warning("Rejected verification against a superseded recovery id")
            return False
        recovery_id = self.recovery_id
        self.loading = True
        self.error = None
        self.error_code = None
        logger.info("Verifying device link code")
        try:
            response = self._devices.recover_verify(recovery_id, code)
        except ApiError as exc:
            self.error_code = exc.code
            self.error = VERIFY_ERROR_MESSAGES.get(exc.code, VERIFY_FAILED_MESSAGE)
            logger.warning("Device link verification failed: %s", exc.code)
            return False
        finally:
            self.loading = False
        self._session.restore_session(response.access_token, response.role)
        self.step = RecoveryStep.SUCCESS
        self.recovery_id = None
        self._session.navigator.navigate(ROOT_ROUTE)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.recovery_id = None
        self._session.cancel_device_recovery()
