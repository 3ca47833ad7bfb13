from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AutoLogoutTimer:
    """Holds at most one pending auto-logout.

    ``on_fire`` runs when an armed timer elapses; ``on_overdue`` runs
    synchronously when asked to schedule an instant that already passed.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        on_fire: Callable[[], None],
        on_overdue: Callable[[], None],
        clock: Clock = utc_now,
    ) -> None:
        self._scheduler = scheduler
        self._on_fire = on_fire
        self._on_overdue = on_overdue
        self._clock = clock
        self._lock = threading.Lock()
        self._handle: TimerHandle | None = None
        self._generation = 0
        self.expires_at: datetime | None = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def schedule(self, expires_at: datetime) -> None:
        with self._lock:
            self._cancel_locked()
            delta = (expires_at - self._clock()).total_seconds()
            if delta > 0:
                generation = self._generation
                self.expires_at = expires_at
                self._handle = self._scheduler.call_later(delta, lambda: self._fire(generation))
                logger.info("Auto-logout armed in %.0fs", delta)
                return
        logger.info("Session already expired, forcing logout")
        self._on_overdue()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self.expires_at = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._handle = None
            self.expires_at = None
        logger.info("Auto-logout timer fired")
        self._on_fire()
