"""Advisory reading of access-token claims.

The payload is decoded without verifying the signature.  The result is only
used to schedule the client-side auto-logout; the backend remains the sole
authority on whether a token is valid.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from jose import JWTError, jwt

logger = logging.getLogger(__name__)


def unverified_claims(token: str) -> dict[str, object] | None:
    try:
        claims = jwt.get_unverified_claims(token)
    except (JWTError, ValueError, TypeError):
        return None
    return claims if isinstance(claims, dict) else None


def _claim_instant(claims: dict[str, object], name: str) -> datetime | None:
    value = claims.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def expiration_from_token(token: str | None) -> datetime | None:
    if not token:
        return None
    claims = unverified_claims(token)
    if claims is None:
        logger.debug("Access token claims could not be decoded")
        return None
    return _claim_instant(claims, "exp")


def issued_at_from_token(token: str | None) -> datetime | None:
    if not token:
        return None
    claims = unverified_claims(token)
    return _claim_instant(claims, "iat") if claims else None
