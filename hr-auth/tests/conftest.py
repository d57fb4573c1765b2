"""Shared fixtures for auth tests."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from passwords import PasswordHasher
from sessions import SessionManager
from store import InMemoryAccountStore
from tokens import TokenIssuer

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"
VALID_PASSWORD = "secureP@ss1"
TEST_ITERATIONS = 1_000


class FakeClock:
    """Settable clock for deterministic expiry."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = dict(
        jwt_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        password_hash_iterations=TEST_ITERATIONS,
        log_json=False,
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(TEST_ITERATIONS)


@pytest.fixture
def issuer(settings, clock) -> TokenIssuer:
    return TokenIssuer(settings, clock=clock)


@pytest.fixture
def sessions(settings, store, hasher, issuer) -> SessionManager:
    return SessionManager(settings, store, hasher, issuer)


@pytest.fixture
def client(settings, store, issuer) -> TestClient:
    app = create_app(settings=settings, store=store, issuer=issuer)
    return TestClient(app)
