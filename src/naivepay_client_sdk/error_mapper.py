from __future__ import annotations

import re
from typing import Mapping

from .exceptions import (
    AccountBlockedError,
    ApiError,
    AuthError,
    BadCredentialsError,
    ConflictError,
    DeviceTrustError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    RecoveryCodeError,
    ServerError,
    ValidationError,
)

_CODE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]+$")

CREDENTIAL_CODES = frozenset({"BAD_CREDENTIALS", "USER_NOT_FOUND"})
DEVICE_TRUST_CODES = frozenset({"DEVICE_REQUIRED", "DEVICE_UNAUTHORIZED"})
RECOVERY_CODE_CODES = frozenset(
    {
        "INVALID_CODE",
        "CODE_INVALID",
        "CODE_EXPIRED",
        "CODE_ALREADY_USED",
        "RECOVERY_INVALID",
        "RECOVERY_EXPIRED",
        "FINGERPRINT_MISMATCH",
    }
)

_STATUS_CLASSES: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}
_CODE_CLASSES: dict[str, type[ApiError]] = {
    **{code: BadCredentialsError for code in CREDENTIAL_CODES},
    **{code: DeviceTrustError for code in DEVICE_TRUST_CODES},
    **{code: RecoveryCodeError for code in RECOVERY_CODE_CODES},
    "ACCOUNT_BLOCKED": AccountBlockedError,
}


def resolve_code(payload: Mapping[str, object]) -> str | None:
    """Backend bodies carry the code under ``code``, ``error`` or ``message``."""
    for key in ("code", "error", "message"):
        value = payload.get(key)
        if isinstance(value, str) and _CODE_PATTERN.match(value.strip()):
            return value.strip()
    return None


def error_class_for(status_code: int, code: str) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    return _CODE_CLASSES.get(code) or _STATUS_CLASSES.get(status_code, ApiError)


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code = resolve_code(payload) or "HTTP_ERROR"
    body_trace_id = payload.get("trace_id")
    error_cls = error_class_for(status_code, code)
    return error_cls(
        code=code,
        message=str(payload.get("message") or payload.get("error") or "Request failed"),
        details=payload.get("details"),
        trace_id=str(body_trace_id) if body_trace_id is not None else trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
