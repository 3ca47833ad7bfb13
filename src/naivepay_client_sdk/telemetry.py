"""Local, opt-in telemetry for session lifecycle events.

Events are appended as JSON lines to a file under the user log directory.
Nothing here talks to the network.  Context must never carry credentials or
identifiers, so ``build_event`` rejects known PII keys and any value shaped
like a JWT.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from platformdirs import user_log_dir

logger = logging.getLogger(__name__)

EVENT_NAMES: Mapping[str, frozenset[str]] = {
    "auth": frozenset({"login", "logout"}),
    "session": frozenset(
        {"auto_logout", "session_closed", "inactivity_warning", "inactivity_timeout", "token_removed"}
    ),
    "device": frozenset({"device_linked"}),
    "navigation": frozenset({"redirect_login"}),
    "error": frozenset({"backend_logout_failed"}),
}
_PII_KEYS = frozenset(
    {
        "email",
        "identifier",
        "password",
        "code",
        "token",
        "access_token",
        "authorization",
        "fingerprint",
        "rut",
    }
)
_JWT_SHAPE = re.compile(r"^[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]*$")
DEFAULT_MAX_BYTES = 1_000_000


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    module: str
    action: str
    timestamp_utc: str
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def _check_context(context: Mapping[str, Any] | None) -> None:
    if not context:
        return
    pii = sorted(key for key in context if key.lower() in _PII_KEYS)
    if pii:
        raise ValueError(f"PII-like keys are forbidden in telemetry context: {pii}")
    leaked = sorted(key for key, value in context.items() if isinstance(value, str) and _JWT_SHAPE.match(value))
    if leaked:
        raise ValueError(f"Token-shaped values are forbidden in telemetry context: {leaked}")


def build_event(
    *,
    category: str,
    name: str,
    module: str,
    action: str,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    names = EVENT_NAMES.get(category)
    if names is None:
        raise ValueError(f"Unsupported telemetry category: {category}")
    if name not in names:
        raise ValueError(f"Unknown {category} event: {name}")
    _check_context(context)
    return TelemetryEvent(
        category=category,
        name=name,
        module=module,
        action=action,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        success=success,
        error_code=error_code,
        context=dict(context) if context else None,
    )


def telemetry_enabled_from_env() -> bool:
    return os.getenv("NAIVEPAY_TELEMETRY_ENABLED", "0").strip().lower() in {"1", "true", "yes", "on"}


class TelemetryLogger:
    """Appends events to ``telemetry.jsonl``, rolling it to ``.1`` past ``max_bytes``."""

    def __init__(
        self,
        *,
        app_name: str,
        enabled: bool | None = None,
        log_file: str | Path | None = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self.app_name = app_name
        self.enabled = telemetry_enabled_from_env() if enabled is None else enabled
        self.log_file = Path(log_file) if log_file else Path(user_log_dir(app_name, "NaivePay")) / "telemetry.jsonl"
        self.max_bytes = max_bytes
        self._lock = threading.Lock()

    def emit(self, event: TelemetryEvent) -> bool:
        logger.debug("telemetry %s.%s (%s)", event.category, event.name, event.action)
        if not self.enabled:
            return False
        line = json.dumps({**event.to_dict(), "app_name": self.app_name}, sort_keys=True)
        with self._lock:
            try:
                self._append(line)
            except OSError as exc:
                # Telemetry is best effort; a full disk must not break the session.
                logger.warning("Telemetry write to %s failed: %s", self.log_file, exc)
                return False
        return True

    def _append(self, line: str) -> None:
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        if self.log_file.exists() and self.log_file.stat().st_size >= self.max_bytes:
            self.log_file.replace(self.log_file.with_name(self.log_file.name + ".1"))
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(f"{line}\n")
