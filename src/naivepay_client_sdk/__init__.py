from .auth_store import AuthStore, MemoryAuthStore
from .config import ClientConfig, ConfigError, load_config
from .device_identity import DeviceIdentityProvider, DeviceInfo, FingerprintStore
from .device_recovery import DeviceRecoveryFlow, RecoveryStep
from .exceptions import (
    AccountBlockedError,
    ApiError,
    BadCredentialsError,
    DeviceTrustError,
    ForbiddenError,
    NotFoundError,
    RecoveryCodeError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .guards import AdminGuard, AuthEntryGuard, AuthGuard, GuardResult
from .http_client import HttpClient
from .inactivity import InactivityMonitor, InactivityWarning
from .login_flow import LoginController, LoginErrorKind, LoginOutcome
from .models import LoginResponse, SessionData, SessionStatus, UserRole
from .navigation import Navigator, RecordingNavigator
from .password_recovery import PasswordRecoveryFlow, PasswordRecoveryStep
from .scheduler import Scheduler, ThreadingScheduler
from .session_manager import AuthSessionService, LogoutReason, Session, SessionEvent, SessionState
from .session_timer import AutoLogoutTimer
from .token_watcher import TokenWatcher

__all__ = [
    "AccountBlockedError",
    "AdminGuard",
    "ApiError",
    "AuthEntryGuard",
    "AuthGuard",
    "AuthSessionService",
    "AuthStore",
    "AutoLogoutTimer",
    "BadCredentialsError",
    "ClientConfig",
    "ConfigError",
    "DeviceIdentityProvider",
    "DeviceInfo",
    "DeviceRecoveryFlow",
    "DeviceTrustError",
    "FingerprintStore",
    "ForbiddenError",
    "GuardResult",
    "HttpClient",
    "InactivityMonitor",
    "InactivityWarning",
    "LoginController",
    "LoginErrorKind",
    "LoginOutcome",
    "LoginResponse",
    "LogoutReason",
    "MemoryAuthStore",
    "Navigator",
    "NotFoundError",
    "PasswordRecoveryFlow",
    "PasswordRecoveryStep",
    "RecordingNavigator",
    "RecoveryCodeError",
    "RecoveryStep",
    "Scheduler",
    "Session",
    "SessionData",
    "SessionEvent",
    "SessionState",
    "SessionStatus",
    "ThreadingScheduler",
    "TokenWatcher",
    "TransportError",
    "UnauthorizedError",
    "UserRole",
    "ValidationError",
    "load_config",
]
