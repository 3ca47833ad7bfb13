from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from .exceptions import ApiError
from .models import SessionStatus
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WarningSnapshot:
    visible: bool
    remaining_seconds: int


WarningListener = Callable[[WarningSnapshot], None]


class InactivityWarning:
    """Process-wide "your session is about to close" state.

    Only one warning is visible at a time.  While visible a one second countdown
    runs; reaching zero hides the warning and calls ``on_timeout``.
    """

    def __init__(self, scheduler: Scheduler, *, on_timeout: Callable[[], None] | None = None) -> None:
        self._scheduler = scheduler
        self.on_timeout = on_timeout
        self._lock = threading.RLock()
        self._visible = False
        self._remaining_seconds = 0
        self._countdown: TimerHandle | None = None
        self._listeners: list[WarningListener] = []

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    def snapshot(self) -> WarningSnapshot:
        with self._lock:
            return WarningSnapshot(visible=self._visible, remaining_seconds=self._remaining_seconds)

    def subscribe(self, listener: WarningListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def show(self, seconds: int) -> bool:
        with self._lock:
            if self._visible:
                return False
            self._visible = True
            self._remaining_seconds = max(int(seconds), 0)
            self._countdown = self._scheduler.call_every(1.0, self._tick)
        self._publish()
        return True

    def hide(self) -> None:
        with self._lock:
            if self._countdown is not None:
                self._countdown.cancel()
                self._countdown = None
            if not self._visible:
                return
            self._visible = False
            self._remaining_seconds = 0
        self._publish()

    def _tick(self) -> None:
        with self._lock:
            if not self._visible:
                return
            self._remaining_seconds = max(self._remaining_seconds - 1, 0)
            expired = self._remaining_seconds == 0
        if expired:
            self.hide()
            if self.on_timeout is not None:
                self.on_timeout()
            return
        self._publish()

    def _publish(self) -> None:
        snapshot = self.snapshot()
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)


class InactivityMonitor:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        fetch_status: Callable[[], SessionStatus],
        on_warning: Callable[[int], None],
        on_session_invalid: Callable[[], None],
        interval_seconds: float = 60.0,
        warning_threshold_minutes: int = 1,
    ) -> None:
        self._scheduler = scheduler
        self._fetch_status = fetch_status
        self._on_warning = on_warning
        self._on_session_invalid = on_session_invalid
        self.interval_seconds = interval_seconds
        self.warning_threshold_minutes = warning_threshold_minutes
        self._lock = threading.RLock()
        self._handle: TimerHandle | None = None
        self._warning_shown = False

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def warning_shown(self) -> bool:
        return self._warning_shown

    def start(self) -> None:
        with self._lock:
            self.stop()
            self._handle = self._scheduler.call_every(self.interval_seconds, self.poll)
        logger.info("Inactivity monitor started (every %.0fs)", self.interval_seconds)

    def stop(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            self._warning_shown = False

    def poll(self) -> None:
        try:
            status = self._fetch_status()
        except ApiError as exc:
            if exc.status_code == 401:
                logger.info("Session status rejected with 401, session is no longer valid")
                self.stop()
                self._on_session_invalid()
                return
            logger.warning("Session status poll failed: %s", exc)
            return

        remaining = status.effective_minutes
        if remaining is None or remaining > self.warning_threshold_minutes:
            return
        with self._lock:
            if self._warning_shown or self._handle is None:
                return
            self._warning_shown = True
        logger.info("Inactivity threshold reached (%s min left)", remaining)
        self._on_warning(max(remaining, 0) * 60)

    def reset_activity(self) -> None:
        with self._lock:
            self._warning_shown = False
        try:
            # Any authenticated call renews the backend's inactivity window.
            self._fetch_status()
        except ApiError as exc:
            logger.warning("Activity reset request failed: %s", exc)
