"""Result values returned by every core auth operation.

Authentication and authorization decisions are never raised: each
operation returns either ``Ok(value)`` or ``Err(kind)`` and the HTTP
layer maps the kind to a status code. Infrastructure failures are the
exception and propagate as ``store.StoreError``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


class AuthError(str, Enum):
    """Every way a core auth operation can refuse a caller."""

    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_INACTIVE = "account_inactive"
    UNAUTHORIZED = "unauthorized"
    TOKEN_EXPIRED = "token_expired"
    REFRESH_TOKEN_INVALID = "refresh_token_invalid"
    FORBIDDEN = "forbidden"
    DUPLICATE_ACCOUNT = "duplicate_account"
    ACCOUNT_NOT_FOUND = "account_not_found"
    NOT_HR_ACCOUNT = "not_hr_account"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


# Wrong password and unknown email share one message.
_MESSAGES: dict[AuthError, str] = {
    AuthError.INVALID_CREDENTIALS: "Invalid email or password",
    AuthError.ACCOUNT_INACTIVE: "Account is inactive. Please contact administrator",
    AuthError.UNAUTHORIZED: "Unauthorized access",
    AuthError.TOKEN_EXPIRED: "Token has expired",
    AuthError.REFRESH_TOKEN_INVALID: "Invalid refresh token",
    AuthError.FORBIDDEN: "Insufficient permissions",
    AuthError.DUPLICATE_ACCOUNT: "User with this email already exists",
    AuthError.ACCOUNT_NOT_FOUND: "User not found",
    AuthError.NOT_HR_ACCOUNT: "User is not an HR user",
}


class TokenError(str, Enum):
    """Why a presented token failed verification."""

    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    kind: E

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return getattr(self.kind, "message", str(self.kind.value))


Result = Union[Ok[T], Err[E]]
