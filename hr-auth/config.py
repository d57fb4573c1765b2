"""Application configuration.

Typed settings read from the environment (and an optional ``.env``
file) with pydantic-settings. The settings value is built once at
process start by ``load_settings`` and handed to each component's
constructor; nothing reads configuration from module state.
"""
from __future__ import annotations

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from contracts import (
    ACCESS_TOKEN_TTL,
    DEFAULT_HASH_ITERATIONS,
    MIN_HASH_ITERATIONS,
    MIN_SECRET_LENGTH,
    REFRESH_TOKEN_TTL,
)
from logs import get_logger
from models import _check_email, _check_password_strength

logger = get_logger(__name__)


class Settings(BaseSettings):
    """Settings for the auth core.

    Attributes:
        jwt_secret: Signing secret for access tokens
        jwt_refresh_secret: Signing secret for refresh tokens, distinct
            from ``jwt_secret``
        access_token_ttl_seconds: Access token lifetime (default: 15 min)
        refresh_token_ttl_seconds: Refresh token lifetime (default: 7 days)
        password_hash_iterations: PBKDF2 cost for new digests
        auth_recheck_active: Re-load the account on every protected
            request so deactivation takes effect before the access
            token expires
        log_level: structlog filtering level
        log_json: Render logs as JSON (console rendering otherwise)
        bootstrap_admin_email: Seed a SUPER_ADMIN with this email
        bootstrap_admin_password: Password for the seeded SUPER_ADMIN
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required (no defaults)
    jwt_secret: str
    jwt_refresh_secret: str

    # Token lifetimes
    access_token_ttl_seconds: int = ACCESS_TOKEN_TTL
    refresh_token_ttl_seconds: int = REFRESH_TOKEN_TTL

    # Password hashing
    password_hash_iterations: int = DEFAULT_HASH_ITERATIONS

    # Request authentication
    auth_recheck_active: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Bootstrap
    bootstrap_admin_email: str | None = None
    bootstrap_admin_password: str | None = None

    @field_validator("jwt_secret", "jwt_refresh_secret")
    @classmethod
    def secret_min_length(cls, v: str) -> str:
        if len(v) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"must be at least {MIN_SECRET_LENGTH} characters"
            )
        return v

    @field_validator("access_token_ttl_seconds", "refresh_token_ttl_seconds")
    @classmethod
    def ttl_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("password_hash_iterations")
    @classmethod
    def iterations_floor(cls, v: int) -> int:
        if v < MIN_HASH_ITERATIONS:
            raise ValueError(f"must be at least {MIN_HASH_ITERATIONS}")
        return v

    @field_validator("bootstrap_admin_email")
    @classmethod
    def bootstrap_email_format(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_email(v)

    @field_validator("bootstrap_admin_password")
    @classmethod
    def bootstrap_password_strength(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_password_strength(v)

    @model_validator(mode="after")
    def secrets_differ(self) -> Settings:
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError(
                "JWT_SECRET and JWT_REFRESH_SECRET must be different"
            )
        return self

    @model_validator(mode="after")
    def bootstrap_pair(self) -> Settings:
        if (self.bootstrap_admin_email is None) != (self.bootstrap_admin_password is None):
            raise ValueError(
                "BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD must be set together"
            )
        return self


def load_settings(**overrides) -> Settings:
    """Build the settings value, refusing to start when it is invalid.

    Raises:
        SystemExit: If required variables are missing or invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        for error in exc.errors():
            field = ".".join(str(p) for p in error["loc"]) or "settings"
            logger.error(
                "invalid_setting",
                field=field,
                reason=error["msg"],
            )
        raise SystemExit(1) from exc
