from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class DeviceType(str, Enum):
    DESKTOP = "DESKTOP"
    MOBILE = "MOBILE"
    TABLET = "TABLET"
    BOT = "BOT"
    UNKNOWN = "Unknown"


class LoginRequest(BaseModel):
    identifier: str
    password: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(alias="accessToken")
    expires_at: str | None = Field(default=None, alias="expiresAt")
    jti: str | None = None
    role: UserRole | None = None


class SessionStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    minutes_remaining: int | None = Field(default=None, alias="minutesRemaining")
    minutes_until_inactivity: int | None = Field(default=None, alias="minutesUntilInactivity")
    minutes_until_max_expiration: int | None = Field(default=None, alias="minutesUntilMaxExpiration")

    @property
    def effective_minutes(self) -> int | None:
        if self.minutes_remaining is not None:
            return self.minutes_remaining
        return self.minutes_until_inactivity


class MessageResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""


class RecoveryTicket(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str = ""
    recovery_id: str = Field(alias="recoveryId")


class Device(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    user_id: int = Field(alias="userId")
    fingerprint: str
    type: str
    os: str
    browser: str
    registered_at: str = Field(alias="registeredAt")
    last_login_at: str | None = Field(default=None, alias="lastLoginAt")


class DeviceLog(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | None = None
    user_id: int = Field(alias="userId")
    device_id: int | None = Field(default=None, alias="deviceId")
    action: str
    result: str
    details: str | None = None
    created_at: str = Field(alias="createdAt")
    device_fingerprint_snapshot: str | None = Field(default=None, alias="deviceFingerprintSnapshot")
    device_os_snapshot: str | None = Field(default=None, alias="deviceOsSnapshot")
    device_type_snapshot: str | None = Field(default=None, alias="deviceTypeSnapshot")
    device_browser_snapshot: str | None = Field(default=None, alias="deviceBrowserSnapshot")


class SessionData(BaseModel):
    access_token: str
    role: UserRole | None = None
    env_name: str | None = None
