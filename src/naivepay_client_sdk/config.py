from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    inactivity_poll_seconds: float = 60.0
    inactivity_warning_minutes: int = 1
    warning_countdown_seconds: int = 60
    token_watch_seconds: float = 1.0
    max_login_attempts: int = 5
    app_name: str = "naivepay"

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _bounded(name: str, value: float, *, minimum: float, inclusive: bool) -> None:
    ok = value >= minimum if inclusive else value > minimum
    if not ok:
        op = ">=" if inclusive else ">"
        raise ConfigError(f"Invalid {name}: expected {op} {minimum:g}, got {value}")


def _float_setting(name: str, default: float, *, minimum: float = 0.0, inclusive: bool = False) -> float:
    value = _read_float(name, str(default))
    _bounded(name, value, minimum=minimum, inclusive=inclusive)
    return value


def _int_setting(name: str, default: int, *, minimum: int = 0) -> int:
    value = _read_int(name, str(default))
    _bounded(name, value, minimum=minimum, inclusive=True)
    return value


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("NAIVEPAY_ENV") or "dev").strip()
    api_base_url = (
        (os.getenv(f"NAIVEPAY_API_BASE_URL_{env_name.upper()}") or "").strip()
        or (os.getenv("NAIVEPAY_API_BASE_URL") or "").strip()
    )
    _require({"NAIVEPAY_API_BASE_URL": api_base_url}, ["NAIVEPAY_API_BASE_URL"])

    defaults = ClientConfig(env_name=env_name, api_base_url=api_base_url)
    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=_float_setting(
            "NAIVEPAY_CONNECT_TIMEOUT_SECONDS", defaults.connect_timeout_seconds
        ),
        read_timeout_seconds=_float_setting("NAIVEPAY_READ_TIMEOUT_SECONDS", defaults.read_timeout_seconds),
        retries=_int_setting("NAIVEPAY_RETRIES", defaults.retries),
        retry_backoff_seconds=_float_setting(
            "NAIVEPAY_RETRY_BACKOFF_SECONDS", defaults.retry_backoff_seconds, inclusive=True
        ),
        max_connections=_int_setting("NAIVEPAY_MAX_CONNECTIONS", defaults.max_connections, minimum=1),
        verify_ssl=_coerce_bool(os.getenv("NAIVEPAY_VERIFY_SSL"), defaults.verify_ssl),
        # Session timing; defaults follow the backend's 10 minute inactivity window.
        inactivity_poll_seconds=_float_setting(
            "NAIVEPAY_INACTIVITY_POLL_SECONDS", defaults.inactivity_poll_seconds
        ),
        inactivity_warning_minutes=_int_setting(
            "NAIVEPAY_INACTIVITY_WARNING_MINUTES", defaults.inactivity_warning_minutes
        ),
        warning_countdown_seconds=_int_setting(
            "NAIVEPAY_WARNING_COUNTDOWN_SECONDS", defaults.warning_countdown_seconds, minimum=1
        ),
        token_watch_seconds=_float_setting("NAIVEPAY_TOKEN_WATCH_SECONDS", defaults.token_watch_seconds),
        max_login_attempts=_int_setting("NAIVEPAY_MAX_LOGIN_ATTEMPTS", defaults.max_login_attempts, minimum=1),
        app_name=(os.getenv("NAIVEPAY_APP_NAME") or defaults.app_name).strip(),
    )
