from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest
from jose import jwt

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR / "src"))

from naivepay_client_sdk.auth_store import MemoryAuthStore  # noqa: E402
from naivepay_client_sdk.config import ClientConfig  # noqa: E402
from naivepay_client_sdk.device_identity import DeviceIdentityProvider, FingerprintStore  # noqa: E402
from naivepay_client_sdk.navigation import RecordingNavigator  # noqa: E402
from naivepay_client_sdk.session_manager import AuthSessionService  # noqa: E402
from naivepay_client_sdk.telemetry import TelemetryLogger  # noqa: E402

API = "https://api.example.com"
START = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
CHROME_WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class _Job:
    due: float
    seq: int
    callback: Callable[[], None]
    interval: float | None = None
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Virtual-time scheduler: nothing runs until ``advance`` is called."""

    elapsed: float = 0.0
    jobs: list[_Job] = field(default_factory=list)
    _seq: int = 0

    def now(self) -> datetime:
        return START + timedelta(seconds=self.elapsed)

    def _add(self, delay: float, callback: Callable[[], None], interval: float | None) -> _Job:
        self._seq += 1
        job = _Job(due=self.elapsed + delay, seq=self._seq, callback=callback, interval=interval)
        self.jobs.append(job)
        return job

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> _Job:
        return self._add(max(delay_seconds, 0.0), callback, None)

    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> _Job:
        return self._add(interval_seconds, callback, interval_seconds)

    def pending_one_shots(self) -> list[_Job]:
        return [job for job in self.jobs if not job.cancelled and job.interval is None]

    def advance(self, seconds: float) -> None:
        target = self.elapsed + seconds
        while True:
            live = [job for job in self.jobs if not job.cancelled and job.due <= target]
            if not live:
                break
            job = min(live, key=lambda item: (item.due, item.seq))
            self.elapsed = job.due
            if job.interval is None:
                job.cancelled = True
            else:
                job.due += job.interval
            job.callback()
        self.jobs = [job for job in self.jobs if not job.cancelled]
        self.elapsed = target


def make_token(expires_in: float | None = 3600, *, issued_at: datetime = START, subject: str = "user@example.com") -> str:
    claims: dict[str, object] = {"sub": subject, "iat": int(issued_at.timestamp())}
    if expires_in is not None:
        claims["exp"] = int((issued_at + timedelta(seconds=expires_in)).timestamp())
    return jwt.encode(claims, "test-secret", algorithm="HS256")


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url=API, retries=0, retry_backoff_seconds=0)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def device(tmp_path: Path) -> DeviceIdentityProvider:
    return DeviceIdentityProvider(
        FingerprintStore(base_dir=tmp_path / "device"),
        user_agent=CHROME_WINDOWS_UA,
        language="es-CL",
        timezone="America/Santiago",
    )


@pytest.fixture
def store() -> MemoryAuthStore:
    return MemoryAuthStore()


@pytest.fixture
def service(config, store, device, scheduler, navigator):
    svc = AuthSessionService(
        config,
        store=store,
        device=device,
        scheduler=scheduler,
        navigator=navigator,
        clock=scheduler.now,
        telemetry=TelemetryLogger(app_name="naivepay-test", enabled=False),
    )
    svc.start()
    yield svc
    svc.close()
