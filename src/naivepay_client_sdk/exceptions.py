from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"

    @property
    def remaining_attempts(self) -> int | None:
        if not isinstance(self.raw_payload, dict):
            return None
        value = self.raw_payload.get("remainingAttempts")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value)


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class AuthError(UnauthorizedError):
    """Authentication failed or session is invalid."""


class PermissionError(ForbiddenError):
    """Authorization denied by the backend."""


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class BadCredentialsError(AuthError):
    """Wrong password or unknown identifier."""


class AccountBlockedError(PermissionError):
    """Too many failed attempts; the backend mailed unlock instructions."""


class DeviceTrustError(AuthError):
    """The current device fingerprint is not linked to the account."""


class RecoveryCodeError(ValidationError):
    """A one-time recovery code was rejected (wrong, expired, already used)."""
