from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_seconds: float, callback: Callback) -> TimerHandle: ...

    def call_every(self, interval_seconds: float, callback: Callback) -> TimerHandle: ...


def _run_guarded(callback: Callback) -> None:
    try:
        callback()
    except Exception:
        # A failing tick must not kill the timer thread silently.
        logger.exception("Scheduled callback %r failed", callback)


class _OneShot:
    def __init__(self, delay_seconds: float, callback: Callback) -> None:
        self._timer = threading.Timer(max(delay_seconds, 0.0), _run_guarded, args=(callback,))
        self._timer.daemon = True

    def start(self) -> "_OneShot":
        self._timer.start()
        return self

    def cancel(self) -> None:
        self._timer.cancel()


class _Repeating:
    def __init__(self, interval_seconds: float, callback: Callback) -> None:
        self._interval = interval_seconds
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self) -> "_Repeating":
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            _run_guarded(self._callback)

    def cancel(self) -> None:
        self._stopped.set()


class ThreadingScheduler:
    """Default scheduler backed by daemon threads."""

    def call_later(self, delay_seconds: float, callback: Callback) -> TimerHandle:
        return _OneShot(delay_seconds, callback).start()

    def call_every(self, interval_seconds: float, callback: Callback) -> TimerHandle:
        if interval_seconds <= 0:
            raise ValueError(f"interval must be > 0, got {interval_seconds}")
        return _Repeating(interval_seconds, callback).start()
