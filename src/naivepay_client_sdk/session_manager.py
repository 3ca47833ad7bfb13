"""Client-side session lifecycle.

``AuthSessionService`` is the only writer of session state.  It owns the
auto-logout timer, the inactivity monitor and warning, the token watcher and
the request interceptor, and publishes a ``SessionEvent`` to subscribers on
every state change.  All mutations go through one re-entrant lock because timer
callbacks arrive on scheduler threads.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from .auth_store import MemoryAuthStore, SessionStore
from .clients.auth import AuthClient
from .clients.devices import DevicesClient
from .config import ClientConfig
from .device_identity import DeviceIdentityProvider, FingerprintStore
from .exceptions import ApiError
from .http_client import HttpClient
from .inactivity import InactivityMonitor, InactivityWarning
from .interceptor import SessionInterceptor
from .models import LoginResponse, SessionData, SessionStatus, UserRole
from .navigation import LOGIN_ROUTE, LoggingNavigator, Navigator
from .scheduler import Scheduler, ThreadingScheduler
from .session_timer import AutoLogoutTimer, Clock, utc_now
from .telemetry import TelemetryLogger, build_event
from .token_claims import expiration_from_token, issued_at_from_token
from .token_watcher import TokenWatcher

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    RECOVERY_IN_PROGRESS = "recovery_in_progress"


class LogoutReason(str, Enum):
    SESSION_CLOSED = "session_closed"
    LOGOUT_OK = "logout_ok"


@dataclass(frozen=True)
class Session:
    access_token: str = field(repr=False)
    role: UserRole | None
    device_fingerprint: str
    issued_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class SessionEvent:
    state: SessionState
    session: Session | None
    reason: LogoutReason | None = None


SessionListener = Callable[[SessionEvent], None]


def _parse_instant(value: str | None) -> datetime | None:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_role(role: UserRole | str | None) -> UserRole | None:
    if role is None or isinstance(role, UserRole):
        return role
    try:
        return UserRole(str(role).upper())
    except ValueError:
        return None


class AuthSessionService:
    def __init__(
        self,
        config: ClientConfig,
        *,
        http: HttpClient | None = None,
        store: SessionStore | None = None,
        device: DeviceIdentityProvider | None = None,
        scheduler: Scheduler | None = None,
        navigator: Navigator | None = None,
        clock: Clock = utc_now,
        telemetry: TelemetryLogger | None = None,
    ) -> None:
        self.config = config
        self.http = http or HttpClient(config=config)
        self.store: SessionStore = store or MemoryAuthStore()
        self.device = device or DeviceIdentityProvider(FingerprintStore(app_name=config.app_name))
        self.scheduler: Scheduler = scheduler or ThreadingScheduler()
        self.navigator: Navigator = navigator or LoggingNavigator()
        self.telemetry = telemetry or TelemetryLogger(app_name=config.app_name)
        self._clock = clock

        self._lock = threading.RLock()
        self._state = SessionState.ANONYMOUS
        self._session: Session | None = None
        self._terminating = False
        self._started = False
        self._listeners: list[SessionListener] = []

        self.interceptor = SessionInterceptor(self.store, self.device, on_unauthorized=self.handle_unauthorized)
        self.interceptor.install(self.http)
        self.timer = AutoLogoutTimer(
            self.scheduler,
            on_fire=self._on_token_expired,
            on_overdue=self._on_token_overdue,
            clock=clock,
        )
        self.warning = InactivityWarning(self.scheduler, on_timeout=self._on_warning_timeout)
        self.monitor = InactivityMonitor(
            self.scheduler,
            fetch_status=self._fetch_session_status,
            on_warning=self._on_inactivity_warning,
            on_session_invalid=self._on_session_invalid,
            interval_seconds=config.inactivity_poll_seconds,
            warning_threshold_minutes=config.inactivity_warning_minutes,
        )
        self.watcher = TokenWatcher(
            self.store,
            self.scheduler,
            on_external_removal=self._on_external_token_removal,
            poll_interval_seconds=config.token_watch_seconds,
        )

    # -- lifecycle -------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self._started = True
            stored = self.store.load()
            self.watcher.start()
            if stored is not None:
                logger.info("Restoring stored session")
                self._install(stored.access_token, stored.role, persist=False)

    def close(self) -> None:
        with self._lock:
            self._started = False
            self.watcher.stop()
            self.monitor.stop()
            self.timer.cancel()
            self.warning.hide()

    def __enter__(self) -> "AuthSessionService":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- read side -------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def role(self) -> UserRole | None:
        session = self._session
        return session.role if session else None

    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def auth_client(self, access_token: str | None = None) -> AuthClient:
        return AuthClient(http=self.http, access_token=access_token)

    def devices_client(self) -> DevicesClient:
        return DevicesClient(http=self.http, device=self.device)

    # -- transitions -----------------------------------------------------------

    def login(self, identifier: str, password: str) -> LoginResponse:
        fingerprint = self.device.get_fingerprint()
        try:
            response = self.auth_client().login(identifier, password, fingerprint)
        except ApiError as exc:
            logger.info("Login rejected: %s", exc.code)
            self._emit("auth", "login", "submit", success=False, error_code=exc.code)
            raise
        self._install(response.access_token, response.role, expires_at_hint=response.expires_at)
        logger.info("Login succeeded (role=%s)", response.role.value if response.role else None)
        self._emit("auth", "login", "submit", success=True)
        return response

    def restore_session(self, access_token: str, role: UserRole | str | None) -> Session:
        session = self._install(access_token, _coerce_role(role))
        logger.info("Session restored after device verification")
        self._emit("device", "device_linked", "restore_session", success=True)
        return session

    def logout(self, redirect: bool = True) -> None:
        self._terminate(LogoutReason.LOGOUT_OK, notify_backend=True)
        logger.info("User logged out")
        self._emit("auth", "logout", "logout", success=True, context={"redirect": redirect})
        if redirect and not self.is_authenticated:
            self._navigate_login(LogoutReason.LOGOUT_OK)

    def logout_silent(self) -> None:
        self.logout(redirect=False)

    def clear(self) -> bool:
        """Drop local session state; safe to call any number of times."""
        return self._end_session(None)

    def handle_unauthorized(self) -> None:
        with self._lock:
            if self._terminating or self._session is None:
                return
        self._clear_and_redirect(LogoutReason.SESSION_CLOSED)

    def schedule_auto_logout(self, expires_at: datetime) -> None:
        self.timer.schedule(expires_at)

    def schedule_auto_logout_from_token(self, access_token: str) -> bool:
        expires_at = expiration_from_token(access_token)
        if expires_at is None:
            return False
        self.timer.schedule(expires_at)
        return True

    def begin_device_recovery(self) -> bool:
        with self._lock:
            if self._state is SessionState.AUTHENTICATED:
                return False
            if self._state is not SessionState.RECOVERY_IN_PROGRESS:
                self._set_state(SessionState.RECOVERY_IN_PROGRESS, None)
            return True

    def cancel_device_recovery(self) -> None:
        with self._lock:
            if self._state is SessionState.RECOVERY_IN_PROGRESS:
                self._set_state(SessionState.ANONYMOUS, None)

    # -- inactivity warning resolutions ---------------------------------------

    def continue_session(self) -> None:
        self.warning.hide()
        self.monitor.reset_activity()

    def end_session_from_warning(self) -> None:
        self.warning.hide()
        self.logout(redirect=True)

    def reset_inactivity(self) -> None:
        self.monitor.reset_activity()

    # -- internals -------------------------------------------------------------

    def _install(
        self,
        access_token: str,
        role: UserRole | None,
        *,
        persist: bool = True,
        expires_at_hint: str | None = None,
    ) -> Session:
        expires_at = expiration_from_token(access_token) or _parse_instant(expires_at_hint)
        session = Session(
            access_token=access_token,
            role=role,
            device_fingerprint=self.device.get_fingerprint(),
            issued_at=issued_at_from_token(access_token),
            expires_at=expires_at,
        )
        with self._lock:
            if persist:
                data = SessionData(access_token=access_token, role=role, env_name=self.config.env_name)
                with self.watcher.expect_change(access_token):
                    self.store.save(data)
            self._session = session
            self._terminating = False
            self.warning.hide()
            self._set_state(SessionState.AUTHENTICATED, session)
            self.monitor.start()
            if expires_at is not None:
                self.timer.schedule(expires_at)
            else:
                self.timer.cancel()
        return session

    def _end_session(self, reason: LogoutReason | None) -> bool:
        with self._lock:
            self.monitor.stop()
            self.timer.cancel()
            self.warning.hide()
            with self.watcher.expect_change(None):
                self.store.clear()
            had_session = self._session is not None
            self._session = None
            if self._state is SessionState.AUTHENTICATED:
                self._set_state(SessionState.ANONYMOUS, None, reason)
            return had_session

    def _clear_and_redirect(self, reason: LogoutReason) -> None:
        if self._end_session(reason):
            logger.info("Session closed (%s)", reason.value)
            self._emit("session", "session_closed", "clear", context={"reason": reason.value})
            self._navigate_login(reason)

    def _terminate(self, reason: LogoutReason, *, notify_backend: bool, token: str | None = None) -> bool:
        with self._lock:
            session = self._session
            if token is None and session is not None:
                token = session.access_token
            self._terminating = True
            self.monitor.stop()
            self.timer.cancel()
            self.warning.hide()
        try:
            if notify_backend and token:
                self._notify_backend_logout(token)
        finally:
            with self._lock:
                if self._session is session:
                    ended = self._end_session(reason)
                else:
                    # A login landed while the backend call was in flight.
                    logger.info("Session replaced during logout, keeping the new one")
                    ended = False
                self._terminating = False
        return ended

    def _notify_backend_logout(self, token: str) -> None:
        try:
            self.auth_client(access_token=token).logout()
        except ApiError as exc:
            logger.warning("Backend logout failed, continuing with local cleanup: %s", exc)
            self._emit("error", "backend_logout_failed", "logout", success=False, error_code=exc.code)

    def _set_state(self, state: SessionState, session: Session | None, reason: LogoutReason | None = None) -> None:
        self._state = state
        event = SessionEvent(state=state, session=session, reason=reason)
        for listener in list(self._listeners):
            listener(event)

    def _navigate_login(self, reason: LogoutReason) -> None:
        self._emit("navigation", "redirect_login", "navigate", context={"reason": reason.value})
        self.navigator.navigate(LOGIN_ROUTE, {"reason": reason.value})

    def _emit(self, category: str, name: str, action: str, **kwargs: Any) -> None:
        self.telemetry.emit(build_event(category=category, name=name, module="session", action=action, **kwargs))

    def _fetch_session_status(self) -> SessionStatus:
        with self._lock:
            token = self._session.access_token if self._session else None
        if token is None:
            return SessionStatus()
        return self.auth_client(access_token=token).session_status()

    def _on_token_expired(self) -> None:
        if self._terminate(LogoutReason.SESSION_CLOSED, notify_backend=True):
            logger.info("Session expired, logged out automatically")
            self._emit("session", "auto_logout", "expire")
            self._navigate_login(LogoutReason.SESSION_CLOSED)

    def _on_token_overdue(self) -> None:
        self._clear_and_redirect(LogoutReason.SESSION_CLOSED)

    def _on_session_invalid(self) -> None:
        self._clear_and_redirect(LogoutReason.SESSION_CLOSED)

    def _on_inactivity_warning(self, seconds_left: int) -> None:
        with self._lock:
            if self._state is not SessionState.AUTHENTICATED:
                return
            shown = self.warning.show(self.config.warning_countdown_seconds)
        if shown:
            logger.info("Inactivity warning shown (%ss reported by backend)", seconds_left)
            self._emit("session", "inactivity_warning", "show")

    def _on_warning_timeout(self) -> None:
        if self._terminate(LogoutReason.SESSION_CLOSED, notify_backend=True):
            logger.info("Inactivity countdown elapsed, session closed")
            self._emit("session", "inactivity_timeout", "expire")
            self._navigate_login(LogoutReason.SESSION_CLOSED)

    def _on_external_token_removal(self, last_token: str) -> None:
        self._terminate(LogoutReason.LOGOUT_OK, notify_backend=True, token=last_token)
        self._emit("session", "token_removed", "external_removal")
        if not self.is_authenticated:
            self._navigate_login(LogoutReason.LOGOUT_OK)
