"""Account, claims, and wire models.

Pydantic models for stored accounts, token claims, and request/response
bodies. These define the data shapes used across the auth core. No
business logic lives here -- only structure and field validation.
Wire models serialize with camelCase keys.
"""
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from contracts import EMAIL_PATTERN, MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_email(v: str) -> str:
    v = normalize_email(v)
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email format")
    return v


def _check_password_strength(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(v) > MAX_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
        )
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", v):
        raise ValueError("Password must contain at least one special character")
    return v


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

class Role(str, Enum):
    """Closed set of account roles, listed from most to least privileged.

    Authorization never compares ranks; each protected operation names
    its allowed roles explicitly (see ``middleware``).
    """

    SUPER_ADMIN = "SUPER_ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


DEFAULT_ROLE = Role.EMPLOYEE


# ---------------------------------------------------------------------------
# Account records
# ---------------------------------------------------------------------------

class Account(BaseModel):
    """Full account record as held by the credential store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    email: str
    password_hash: str
    role: Role = DEFAULT_ROLE
    is_active: bool = True
    refresh_fingerprint: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def public(self) -> AccountPublic:
        return AccountPublic(id=self.id, email=self.email, role=self.role)

    def hr_view(self) -> HrAccountView:
        return HrAccountView(
            id=self.id,
            email=self.email,
            role=self.role,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class AccountPublic(WireModel):
    """Account without secrets, returned by the auth endpoints."""

    id: str
    email: str
    role: Role


class HrAccountView(WireModel):
    """Account view for the HR administration endpoints."""

    id: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Token claims
# ---------------------------------------------------------------------------

class IdentityClaims(BaseModel):
    """What an access token asserts about its holder."""

    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., min_length=1)
    email: str
    role: Role


class AccessClaims(IdentityClaims):
    """Verified access-token payload."""

    issued_at: float
    expires_at: float

    def identity(self) -> IdentityClaims:
        return IdentityClaims(
            account_id=self.account_id, email=self.email, role=self.role
        )


class RefreshClaims(BaseModel):
    """Verified refresh-token payload. Carries no email or role."""

    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., min_length=1)
    token_id: str
    issued_at: float
    expires_at: float


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class LoginRequest(WireModel):
    """Credentials for logging in."""

    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _check_email(v)


class RegisterRequest(WireModel):
    """Self-service registration payload."""

    email: str
    password: str
    role: Role = DEFAULT_ROLE

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password_strength(v)


class RefreshRequest(WireModel):
    refresh_token: str = Field(..., min_length=1)


class CreateHrRequest(WireModel):
    """Payload for creating an HR account. The password is optional."""

    email: str
    password: str | None = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_password_strength(v)


class UpdateHrStatusRequest(WireModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------

class LoginResponse(WireModel):
    """Response from a successful login."""

    access_token: str
    refresh_token: str
    user: AccountPublic


class RefreshResponse(WireModel):
    access_token: str


class UserResponse(WireModel):
    user: AccountPublic


class HrCreatedResponse(HrAccountView):
    """HR account view plus the generated password, shown once."""

    temporary_password: str | None = None


class HrListResponse(WireModel):
    users: list[HrAccountView]
    total: int


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime = Field(default_factory=_utcnow)
