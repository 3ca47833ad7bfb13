from __future__ import annotations

from naivepay_client_sdk.error_mapper import map_error, resolve_code
from naivepay_client_sdk.exceptions import (
    AccountBlockedError,
    BadCredentialsError,
    DeviceTrustError,
    ForbiddenError,
    RecoveryCodeError,
    ServerError,
    UnauthorizedError,
)


def test_resolve_code_prefers_code_then_error_then_message() -> None:
    assert resolve_code({"code": "A_B", "error": "C_D"}) == "A_B"
    assert resolve_code({"error": "BAD_CREDENTIALS"}) == "BAD_CREDENTIALS"
    assert resolve_code({"message": "ACCOUNT_BLOCKED"}) == "ACCOUNT_BLOCKED"
    assert resolve_code({"message": "Something went wrong"}) is None


def test_login_failures_map_to_specific_classes() -> None:
    err = map_error(401, {"error": "BAD_CREDENTIALS", "remainingAttempts": 2}, "trace-1")
    assert isinstance(err, BadCredentialsError)
    assert isinstance(err, UnauthorizedError)
    assert err.remaining_attempts == 2
    assert err.trace_id == "trace-1"

    blocked = map_error(403, {"message": "ACCOUNT_BLOCKED"}, None)
    assert isinstance(blocked, AccountBlockedError)
    assert isinstance(blocked, ForbiddenError)

    device = map_error(401, {"error": "DEVICE_UNAUTHORIZED"}, None)
    assert isinstance(device, DeviceTrustError)


def test_recovery_codes_and_fallbacks() -> None:
    err = map_error(400, {"error": "FINGERPRINT_MISMATCH"}, None)
    assert isinstance(err, RecoveryCodeError)
    assert err.code == "FINGERPRINT_MISMATCH"

    plain = map_error(400, {}, None)
    assert plain.code == "HTTP_ERROR"
    assert plain.message == "Request failed"
    assert plain.remaining_attempts is None

    server = map_error(500, {"error": "BAD_CREDENTIALS"}, "trace-500")
    assert isinstance(server, ServerError)
    assert "trace_id=trace-500" in str(server)
