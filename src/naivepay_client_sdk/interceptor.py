from __future__ import annotations

import logging
from typing import Any, Callable, Iterable
from urllib.parse import urlparse

import requests

from .auth_store import SessionStore
from .device_identity import FINGERPRINT_HEADER, DeviceIdentityProvider

logger = logging.getLogger(__name__)

PUBLIC_PATHS: tuple[str, ...] = (
    "/auth/login",
    "/auth/register",
    "/api/register",
    "/api/dispositivos/recover",
    "/api/devices/recover",
)
RECOVERY_PATHS: tuple[str, ...] = (
    "/api/devices/recover",
    "/api/dispositivos/recover",
)


class SessionInterceptor:
    """Request/response hooks installed on ``HttpClient``."""

    def __init__(
        self,
        store: SessionStore,
        device: DeviceIdentityProvider,
        *,
        on_unauthorized: Callable[[], None],
        public_paths: Iterable[str] = PUBLIC_PATHS,
        recovery_paths: Iterable[str] = RECOVERY_PATHS,
    ) -> None:
        self._store = store
        self._device = device
        self._on_unauthorized = on_unauthorized
        self.public_paths = tuple(public_paths)
        self.recovery_paths = tuple(recovery_paths)

    def is_public(self, url: str) -> bool:
        return any(path in url for path in self.public_paths)

    def is_recovery(self, url: str) -> bool:
        path = urlparse(url).path or url
        return any(marker in path for marker in self.recovery_paths)

    def before_request(self, method: str, url: str, context: dict[str, Any]) -> None:
        headers: dict[str, str] = context["headers"]
        headers[FINGERPRINT_HEADER] = self._device.get_fingerprint()
        if self.is_public(url) or "Authorization" in headers:
            return
        token = self._store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

    def after_response(self, response: requests.Response) -> None:
        if response.status_code != 401:
            return
        url = response.url or (response.request.url if response.request is not None else "") or ""
        if self.is_recovery(url):
            return
        logger.info("Backend answered 401, dropping local session")
        self._on_unauthorized()

    def install(self, http: Any) -> None:
        http.before_request = self.before_request
        http.after_response = self.after_response
