"""Session token storage.

``MemoryAuthStore`` is scoped to one running client (the equivalent of a browser
tab) and is the default.  ``AuthStore`` keeps the session in a file under the
user data directory so several processes can share it; removals made by another
process are only observable by polling, which is what the token watcher does.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

from platformdirs import user_data_dir
from pydantic import ValidationError

from .models import SessionData

logger = logging.getLogger(__name__)

StoreListener = Callable[[SessionData | None], None]


class SessionStore(Protocol):
    def save(self, session: SessionData) -> None: ...

    def load(self) -> SessionData | None: ...

    def get_token(self) -> str | None: ...

    def clear(self) -> None: ...

    def subscribe(self, listener: StoreListener) -> Callable[[], None]: ...


class _Listeners:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[StoreListener] = []

    def add(self, listener: StoreListener) -> Callable[[], None]:
        with self._lock:
            self._items.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._items:
                    self._items.remove(listener)

        return unsubscribe

    def notify(self, value: SessionData | None) -> None:
        with self._lock:
            snapshot = list(self._items)
        for listener in snapshot:
            listener(value)


class MemoryAuthStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._data: SessionData | None = None
        self._listeners = _Listeners()

    def save(self, session: SessionData) -> None:
        with self._lock:
            self._data = session
        self._listeners.notify(session)

    def load(self) -> SessionData | None:
        with self._lock:
            return self._data

    def get_token(self) -> str | None:
        data = self.load()
        return data.access_token if data else None

    def clear(self) -> None:
        with self._lock:
            had_data = self._data is not None
            self._data = None
        if had_data:
            self._listeners.notify(None)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        return self._listeners.add(listener)


@dataclass
class AuthStore:
    app_name: str = "naivepay"
    filename: str = "session.json"
    base_dir: Path | None = None
    _listeners: _Listeners = field(default_factory=_Listeners, init=False, repr=False)

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "NaivePay"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def save(self, session: SessionData) -> None:
        path = self._path()
        data = session.model_dump(mode="json")
        path.write_text(json.dumps(data, indent=2))
        try:
            path.chmod(0o600)
        except OSError:
            pass
        self._listeners.notify(session)

    def load(self) -> SessionData | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError):
            logger.warning("Discarding unreadable session file %s", path)
            self.clear()
            return None
        try:
            return SessionData(**data)
        except (TypeError, ValidationError):
            logger.warning("Discarding malformed session file %s", path)
            self.clear()
            return None

    def get_token(self) -> str | None:
        data = self.load()
        return data.access_token if data else None

    def clear(self) -> None:
        path = self._path()
        if path.exists():
            path.unlink(missing_ok=True)
            self._listeners.notify(None)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        return self._listeners.add(listener)
