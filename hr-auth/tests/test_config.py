"""Tests for settings loading and validation."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import ACCESS_SECRET, REFRESH_SECRET, VALID_PASSWORD, make_settings
from config import Settings, load_settings
from contracts import ACCESS_TOKEN_TTL, REFRESH_TOKEN_TTL


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No .env file and no auth variables from the host environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("JWT_SECRET", "JWT_REFRESH_SECRET", "AUTH_RECHECK_ACTIVE",
                 "BOOTSTRAP_ADMIN_EMAIL", "BOOTSTRAP_ADMIN_PASSWORD",
                 "ACCESS_TOKEN_TTL_SECONDS", "REFRESH_TOKEN_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:

    def test_defaults(self):
        settings = make_settings()
        assert settings.access_token_ttl_seconds == ACCESS_TOKEN_TTL
        assert settings.refresh_token_ttl_seconds == REFRESH_TOKEN_TTL
        assert settings.auth_recheck_active is False

    def test_reads_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", ACCESS_SECRET)
        monkeypatch.setenv("JWT_REFRESH_SECRET", REFRESH_SECRET)
        monkeypatch.setenv("ACCESS_TOKEN_TTL_SECONDS", "60")
        settings = Settings()
        assert settings.jwt_secret == ACCESS_SECRET
        assert settings.access_token_ttl_seconds == 60

    def test_reads_env_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text(
            f"JWT_SECRET={ACCESS_SECRET}\nJWT_REFRESH_SECRET={REFRESH_SECRET}\n"
        )
        assert Settings().jwt_refresh_secret == REFRESH_SECRET

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError, match="at least 32"):
            make_settings(jwt_secret="too-short")

    def test_equal_secrets_rejected(self):
        with pytest.raises(ValidationError, match="must be different"):
            make_settings(jwt_refresh_secret=ACCESS_SECRET)

    @pytest.mark.parametrize("field", [
        "access_token_ttl_seconds", "refresh_token_ttl_seconds",
    ])
    def test_non_positive_ttl_rejected(self, field):
        with pytest.raises(ValidationError):
            make_settings(**{field: 0})

    def test_low_hash_cost_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(password_hash_iterations=10)


class TestLoadSettings:

    def test_missing_secrets_exit(self, clean_env):
        with pytest.raises(SystemExit) as exc_info:
            load_settings()
        assert exc_info.value.code == 1

    def test_invalid_secret_exit(self, clean_env):
        with pytest.raises(SystemExit):
            load_settings(jwt_secret="short", jwt_refresh_secret=REFRESH_SECRET)

    def test_valid_overrides(self, clean_env):
        settings = load_settings(
            jwt_secret=ACCESS_SECRET, jwt_refresh_secret=REFRESH_SECRET,
        )
        assert settings.jwt_secret == ACCESS_SECRET


class TestBootstrapSettings:

    def test_valid_pair(self):
        settings = make_settings(
            bootstrap_admin_email=" Root@Example.com",
            bootstrap_admin_password=VALID_PASSWORD,
        )
        assert settings.bootstrap_admin_email == "root@example.com"

    def test_weak_password_rejected(self):
        with pytest.raises(ValidationError, match="at least 8"):
            make_settings(
                bootstrap_admin_email="root@example.com",
                bootstrap_admin_password="x",
            )

    def test_bad_email_rejected(self):
        with pytest.raises(ValidationError, match="Invalid email format"):
            make_settings(
                bootstrap_admin_email="admin",
                bootstrap_admin_password=VALID_PASSWORD,
            )

    @pytest.mark.parametrize("field", [
        "bootstrap_admin_email", "bootstrap_admin_password",
    ])
    def test_half_pair_rejected(self, field):
        value = "root@example.com" if field.endswith("email") else VALID_PASSWORD
        with pytest.raises(ValidationError, match="set together"):
            make_settings(**{field: value})

    def test_weak_bootstrap_exits(self, clean_env):
        with pytest.raises(SystemExit) as exc_info:
            load_settings(
                jwt_secret=ACCESS_SECRET,
                jwt_refresh_secret=REFRESH_SECRET,
                bootstrap_admin_email="root@example.com",
                bootstrap_admin_password="x",
            )
        assert exc_info.value.code == 1
