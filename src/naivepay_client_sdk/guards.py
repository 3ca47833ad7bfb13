from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .models import UserRole
from .navigation import AUTH_ROUTE_PREFIX, LOGIN_ROUTE, ROOT_ROUTE
from .session_manager import AuthSessionService, LogoutReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardResult:
    allowed: bool
    redirect: str | None = None
    query: dict[str, str] = field(default_factory=dict)


def _is_auth_route(path: str) -> bool:
    return path == AUTH_ROUTE_PREFIX or path.startswith(AUTH_ROUTE_PREFIX + "/")


class AuthEntryGuard:
    """Public auth screens are never shown on top of a live session."""

    def __init__(self, session: AuthSessionService) -> None:
        self._session = session

    def check(self, path: str) -> GuardResult:
        if not _is_auth_route(path) or not self._session.is_authenticated:
            return GuardResult(allowed=True)
        logger.info("Authenticated navigation to %s, closing session silently", path)
        self._session.logout_silent()
        return GuardResult(allowed=False, redirect=LOGIN_ROUTE, query={"reason": LogoutReason.LOGOUT_OK.value})


class AuthGuard:
    def __init__(self, session: AuthSessionService) -> None:
        self._session = session

    def check(self, path: str) -> GuardResult:
        if self._session.is_authenticated:
            return GuardResult(allowed=True)
        return GuardResult(allowed=False, redirect=LOGIN_ROUTE)


class AdminGuard:
    def __init__(self, session: AuthSessionService) -> None:
        self._session = session

    def check(self, path: str) -> GuardResult:
        if self._session.role is UserRole.ADMIN:
            return GuardResult(allowed=True)
        logger.warning("Access to %s denied: ADMIN role required", path)
        return GuardResult(allowed=False, redirect=ROOT_ROUTE)
