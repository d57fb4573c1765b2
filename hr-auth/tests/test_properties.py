"""Property-based tests for the auth core.

Uses Hypothesis to discover edge cases in password hashing, token
handling, login failure reporting, and role gating.
"""
from __future__ import annotations

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from conftest import TEST_ITERATIONS, VALID_PASSWORD, FakeClock, make_settings
from contracts import MAX_PASSWORD_LENGTH, validate_account
from middleware import RoleAuthorizer
from models import AccessClaims, IdentityClaims, Role
from passwords import PasswordHasher
from results import AuthError, Err, Ok, TokenError
from sessions import SessionManager
from store import InMemoryAccountStore
from tokens import TokenIssuer, fingerprint

HASHER = PasswordHasher(TEST_ITERATIONS)

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

password_st = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N", "P", "S")),
    min_size=1,
    max_size=64,
)

role_st = st.sampled_from(list(Role))

account_id_st = st.text(
    alphabet="abcdef0123456789", min_size=1, max_size=32,
)

local_part_st = st.from_regex(r"[a-z][a-z0-9._]{0,15}", fullmatch=True)

email_st = st.builds(
    lambda local, domain: f"{local}@{domain}.com",
    local_part_st,
    st.from_regex(r"[a-z]{2,12}", fullmatch=True),
)

secret_st = st.text(
    alphabet=st.characters(min_codepoint=33, max_codepoint=126),
    min_size=32,
    max_size=64,
)


def identity_st() -> st.SearchStrategy[IdentityClaims]:
    return st.builds(
        IdentityClaims, account_id=account_id_st, email=email_st, role=role_st,
    )


def _sessions() -> tuple[SessionManager, InMemoryAccountStore]:
    store = InMemoryAccountStore()
    cfg = make_settings()
    return SessionManager(cfg, store, HASHER, TokenIssuer(cfg)), store


# ---------------------------------------------------------------------------
# Password properties
# ---------------------------------------------------------------------------

class TestPasswordProperties:

    @given(password=password_st)
    @settings(max_examples=50)
    def test_hash_verify_roundtrip(self, password: str):
        """hash then verify always returns True."""
        assert HASHER.verify(password, HASHER.hash(password)) is True

    @given(password=password_st, other=password_st)
    @settings(max_examples=50)
    def test_wrong_password_fails(self, password: str, other: str):
        assume(password != other)
        assert HASHER.verify(other, HASHER.hash(password)) is False

    @given(garbage=st.text(max_size=200))
    @settings(max_examples=100)
    def test_verify_never_raises(self, garbage: str):
        assert HASHER.verify(VALID_PASSWORD, garbage) in (True, False)

    @given(extra=st.integers(min_value=1, max_value=64))
    @settings(max_examples=20)
    def test_over_long_passwords_rejected(self, extra: int):
        password = "a" * (MAX_PASSWORD_LENGTH + extra)
        with pytest.raises(ValueError):
            HASHER.hash(password)


# ---------------------------------------------------------------------------
# Token properties
# ---------------------------------------------------------------------------

class TestTokenProperties:

    @given(identity=identity_st())
    @settings(max_examples=50)
    def test_access_roundtrip(self, identity: IdentityClaims):
        issuer = TokenIssuer(make_settings(), clock=FakeClock())
        result = issuer.verify_access(issuer.issue_access(identity))
        assert isinstance(result, Ok)
        assert result.value.identity() == identity

    @given(account_id=account_id_st)
    @settings(max_examples=50)
    def test_refresh_roundtrip(self, account_id: str):
        issuer = TokenIssuer(make_settings(), clock=FakeClock())
        result = issuer.verify_refresh(issuer.issue_refresh(account_id))
        assert isinstance(result, Ok)
        assert result.value.account_id == account_id

    @given(identity=identity_st(), a=secret_st, b=secret_st)
    @settings(max_examples=30)
    def test_wrong_secret_rejected(self, identity, a: str, b: str):
        assume(a != b)
        clock = FakeClock()
        signer = TokenIssuer(
            make_settings(jwt_secret=a, jwt_refresh_secret=a + "-refresh"),
            clock=clock,
        )
        checker = TokenIssuer(
            make_settings(jwt_secret=b, jwt_refresh_secret=b + "-refresh"),
            clock=clock,
        )
        token = signer.issue_access(identity)
        assert checker.verify_access(token) == Err(TokenError.SIGNATURE_INVALID)

    @given(identity=identity_st(), elapsed=st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=50)
    def test_expiry_boundary(self, identity, elapsed: int):
        clock = FakeClock()
        issuer = TokenIssuer(make_settings(), clock=clock)
        token = issuer.issue_access(identity)
        clock.advance(elapsed)
        result = issuer.verify_access(token)
        if elapsed >= issuer.access_ttl:
            assert result == Err(TokenError.EXPIRED)
        else:
            assert isinstance(result, Ok)

    @given(token=st.text(max_size=300))
    @settings(max_examples=200)
    def test_random_tokens_never_verify(self, token: str):
        issuer = TokenIssuer(make_settings(), clock=FakeClock())
        assert isinstance(issuer.verify_access(token), Err)
        assert isinstance(issuer.verify_refresh(token), Err)

    @given(identity=identity_st(), position=st.integers(min_value=0))
    @settings(max_examples=50)
    def test_single_char_tamper_rejected(self, identity, position: int):
        issuer = TokenIssuer(make_settings(), clock=FakeClock())
        token = issuer.issue_access(identity)
        i = position % len(token)
        replacement = "A" if token[i] != "A" else "B"
        tampered = token[:i] + replacement + token[i + 1:]
        assert isinstance(issuer.verify_access(tampered), Err)

    @given(token=st.text(
        alphabet=st.characters(blacklist_categories=("Cs",)),
        min_size=1, max_size=200,
    ))
    @settings(max_examples=50)
    def test_fingerprint_is_sha256_hex(self, token: str):
        fp = fingerprint(token)
        assert len(fp) == 64
        int(fp, 16)


# ---------------------------------------------------------------------------
# Session properties
# ---------------------------------------------------------------------------

class TestSessionProperties:

    @given(email=email_st, password=password_st)
    @settings(max_examples=25, deadline=None)
    def test_unknown_email_and_wrong_password_look_alike(self, email, password):
        assume(password != VALID_PASSWORD)
        sessions, _ = _sessions()
        sessions.register(email, VALID_PASSWORD)
        wrong = sessions.login(email, password)
        missing = sessions.login("x" + email, password)
        assert wrong == missing == Err(AuthError.INVALID_CREDENTIALS)

    @given(email=email_st, role=role_st)
    @settings(max_examples=25, deadline=None)
    def test_registered_accounts_satisfy_rules(self, email, role):
        sessions, store = _sessions()
        user = sessions.register(email, VALID_PASSWORD, role).value
        sessions.login(email, VALID_PASSWORD)
        report = validate_account(store.get(user.id))
        assert report.passed, report.summary()

    @given(email=email_st, logins=st.integers(min_value=1, max_value=4))
    @settings(max_examples=15, deadline=None)
    def test_only_latest_refresh_token_lives(self, email, logins: int):
        sessions, _ = _sessions()
        sessions.register(email, VALID_PASSWORD)
        tokens = [
            sessions.login(email, VALID_PASSWORD).value.refresh_token
            for _ in range(logins)
        ]
        for stale in tokens[:-1]:
            assert sessions.refresh(stale) == Err(AuthError.REFRESH_TOKEN_INVALID)
        assert isinstance(sessions.refresh(tokens[-1]), Ok)


# ---------------------------------------------------------------------------
# Authorization properties
# ---------------------------------------------------------------------------

class TestAuthorizationProperties:

    @given(role=role_st, allowed=st.frozensets(role_st))
    @settings(max_examples=100)
    def test_allowed_iff_member(self, role: Role, allowed: frozenset):
        claims = AccessClaims(
            account_id="acc-1", email="a@example.com", role=role,
            issued_at=0.0, expires_at=900.0,
        )
        result = RoleAuthorizer().authorize(claims, allowed)
        if role in allowed:
            assert result == Ok(claims)
        else:
            assert result == Err(AuthError.FORBIDDEN)

    @given(allowed=st.frozensets(role_st))
    @settings(max_examples=20)
    def test_missing_claims_always_unauthorized(self, allowed: frozenset):
        result = RoleAuthorizer().authorize(None, allowed)
        assert result == Err(AuthError.UNAUTHORIZED)
