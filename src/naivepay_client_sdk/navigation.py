from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol

logger = logging.getLogger(__name__)

ROOT_ROUTE = "/"
LOGIN_ROUTE = "/auth/login"
DEVICE_RECOVERY_ROUTE = "/auth/recover/device"
AUTH_ROUTE_PREFIX = "/auth"


class Navigator(Protocol):
    def navigate(self, path: str, query: Mapping[str, str] | None = None) -> None: ...


class LoggingNavigator:
    """Fallback for headless hosts: navigation requests are only logged."""

    def navigate(self, path: str, query: Mapping[str, str] | None = None) -> None:
        logger.info("navigate %s %s", path, dict(query or {}))


@dataclass
class RecordingNavigator:
    history: list[tuple[str, dict[str, str]]] = field(default_factory=list)

    def navigate(self, path: str, query: Mapping[str, str] | None = None) -> None:
        self.history.append((path, dict(query or {})))

    @property
    def last(self) -> tuple[str, dict[str, str]] | None:
        return self.history[-1] if self.history else None
