from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator

from .auth_store import SessionStore
from .models import SessionData
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class TokenWatcher:
    """Notices when the stored token disappears behind the session service's back.

    Two signals feed it: change notifications from the store (another component
    or tab clearing it) and a low-frequency poll for stores that cannot notify,
    such as a file removed by another process.
    """

    def __init__(
        self,
        store: SessionStore,
        scheduler: Scheduler,
        *,
        on_external_removal: Callable[[str], None],
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._on_external_removal = on_external_removal
        self.poll_interval_seconds = poll_interval_seconds
        self._lock = threading.RLock()
        self._known_token: str | None = None
        self._expecting = False
        self._handle: TimerHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        with self._lock:
            self.stop()
            self._known_token = self._store.get_token()
            self._unsubscribe = self._store.subscribe(self._on_store_change)
            self._handle = self._scheduler.call_every(self.poll_interval_seconds, self.check)

    def stop(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None

    @contextmanager
    def expect_change(self, token: str | None) -> Iterator[None]:
        """Wrap the service's own writes so they are not mistaken for tampering."""
        with self._lock:
            self._expecting = True
            try:
                yield
            finally:
                self._expecting = False
                self._known_token = token

    def check(self) -> None:
        with self._lock:
            if self._expecting:
                return
            current = self._store.get_token()
            previous = self._known_token
            self._known_token = current
        if previous and not current:
            logger.info("Access token removed outside the session service")
            self._on_external_removal(previous)

    def _on_store_change(self, _value: SessionData | None) -> None:
        self.check()
