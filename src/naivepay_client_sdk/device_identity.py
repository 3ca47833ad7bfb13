from __future__ import annotations

import json
import locale
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from platformdirs import user_data_dir
from requests.utils import default_user_agent
from user_agents import parse as parse_user_agent_string

from .models import DeviceType

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

FINGERPRINT_HEADER = "X-Device-Fingerprint"
DEVICE_OS_HEADER = "X-Device-OS"
DEVICE_TYPE_HEADER = "X-Device-Type"
DEVICE_BROWSER_HEADER = "X-Device-Browser"


@dataclass(frozen=True)
class DeviceInfo:
    fingerprint: str
    os: str
    browser: str
    type: str
    language: str
    timezone: str


@dataclass(frozen=True)
class UserAgentSummary:
    os: str
    browser: str
    type: str


def _known(value: str | None) -> str:
    if not value or value == "Other":
        return UNKNOWN
    return value


def parse_user_agent(user_agent: str | None) -> UserAgentSummary:
    """Reduce a user agent to coarse OS / browser / device type strings."""
    if not user_agent:
        return UserAgentSummary(os=UNKNOWN, browser=UNKNOWN, type=DeviceType.UNKNOWN.value)
    ua = parse_user_agent_string(user_agent)
    if ua.is_tablet:
        device_type = DeviceType.TABLET
    elif ua.is_mobile:
        device_type = DeviceType.MOBILE
    elif ua.is_bot:
        device_type = DeviceType.BOT
    elif ua.is_pc:
        device_type = DeviceType.DESKTOP
    else:
        device_type = DeviceType.UNKNOWN
    return UserAgentSummary(
        os=_known(ua.os.family),
        browser=_known(ua.browser.family),
        type=device_type.value,
    )


def _local_language() -> str:
    language, _encoding = locale.getlocale()
    return language.replace("_", "-") if language else UNKNOWN


def _local_timezone() -> str:
    return datetime.now().astimezone().tzname() or UNKNOWN


class FingerprintStore:
    """Profile-scoped fingerprint file; outlives every session."""

    def __init__(self, app_name: str = "naivepay", filename: str = "device.json", base_dir: Path | None = None) -> None:
        self.app_name = app_name
        self.filename = filename
        self.base_dir = base_dir

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "NaivePay"))
        return base / self.filename

    def read(self) -> str | None:
        path = self._path()
        try:
            if not path.is_file():
                return None
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable device file %s, a new fingerprint will be issued", path)
            return None
        fingerprint = data.get("fingerprint") if isinstance(data, dict) else None
        return fingerprint if isinstance(fingerprint, str) and fingerprint else None

    def write(self, fingerprint: str) -> bool:
        path = self._path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps({"fingerprint": fingerprint}, indent=2))
            path.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not persist device fingerprint to %s: %s", path, exc)
            return False
        return True


class DeviceIdentityProvider:
    def __init__(
        self,
        store: FingerprintStore | None = None,
        *,
        user_agent: str | None = None,
        language: str | None = None,
        timezone: str | None = None,
    ) -> None:
        self._store = store or FingerprintStore()
        self._user_agent = user_agent if user_agent is not None else default_user_agent()
        self._language = language
        self._timezone = timezone
        self._lock = threading.Lock()
        self._fingerprint: str | None = None

    def get_fingerprint(self) -> str:
        with self._lock:
            if self._fingerprint:
                return self._fingerprint
            fingerprint = self._store.read()
            if not fingerprint:
                fingerprint = str(uuid.uuid4())
                self._store.write(fingerprint)
                logger.info("Issued new device fingerprint")
            self._fingerprint = fingerprint
            return fingerprint

    def get_device_info(self) -> DeviceInfo:
        summary = parse_user_agent(self._user_agent)
        return DeviceInfo(
            fingerprint=self.get_fingerprint(),
            os=summary.os,
            browser=summary.browser,
            type=summary.type,
            language=self._language or _local_language(),
            timezone=self._timezone or _local_timezone(),
        )

    def device_headers(self) -> dict[str, str]:
        info = self.get_device_info()
        return {
            FINGERPRINT_HEADER: info.fingerprint,
            DEVICE_OS_HEADER: info.os,
            DEVICE_TYPE_HEADER: info.type,
            DEVICE_BROWSER_HEADER: info.browser,
        }
