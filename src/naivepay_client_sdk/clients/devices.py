from __future__ import annotations

from dataclasses import dataclass

from ..device_identity import DeviceIdentityProvider
from ..models import Device, DeviceLog, LoginResponse, MessageResponse, RecoveryTicket
from .base import BaseClient

DEVICES_BASE = "/api/devices"


@dataclass
class DevicesClient(BaseClient):
    device: DeviceIdentityProvider | None = None

    def _device_headers(self) -> dict[str, str]:
        return self.device.device_headers() if self.device else {}

    def recover_request(self, identifier: str) -> RecoveryTicket:
        data = self.http.request(
            "POST",
            f"{DEVICES_BASE}/recover/request",
            json_body={"identifier": identifier},
            headers=self._device_headers(),
            module="devices",
            operation="recover_request",
        )
        return RecoveryTicket.model_validate(data)

    def recover_verify(self, recovery_id: str, code: str) -> LoginResponse:
        data = self.http.request(
            "POST",
            f"{DEVICES_BASE}/recover/verify",
            json_body={"recoveryId": recovery_id, "code": code},
            headers=self._device_headers(),
            module="devices",
            operation="recover_verify",
        )
        return LoginResponse.model_validate(data)

    def current(self) -> Device | MessageResponse:
        data = self._request(
            "GET", f"{DEVICES_BASE}/current", headers=self._device_headers(), module="devices", operation="current"
        )
        if isinstance(data, dict) and "fingerprint" in data:
            return Device.model_validate(data)
        return MessageResponse.model_validate(data or {})

    def logs(self) -> list[DeviceLog]:
        data = self._request(
            "GET", f"{DEVICES_BASE}/logs", headers=self._device_headers(), module="devices", operation="logs"
        )
        return [DeviceLog.model_validate(item) for item in data or []]

    def unlink(self) -> None:
        self._request(
            "DELETE", f"{DEVICES_BASE}/unlink", headers=self._device_headers(), module="devices", operation="unlink"
        )
