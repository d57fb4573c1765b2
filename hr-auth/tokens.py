"""Access and refresh token issuing and verification.

Token format: ``base64url(json_payload).hex(hmac_sha256)``. Access and
refresh tokens are signed with two independent secrets so a leak of one
cannot be used to forge the other. Verification never raises for a bad
token; it returns ``Err(TokenError)``.

Branches: TOKEN-VALID, TOKEN-MALFORMED, TOKEN-BAD-SIG, TOKEN-EXPIRED
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Callable

from pydantic import ValidationError

from config import Settings
from models import AccessClaims, IdentityClaims, RefreshClaims
from results import Err, Ok, Result, TokenError


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(s: str) -> bytes:
    padding = 4 - len(s) % 4
    if padding != 4:
        s += "=" * padding
    return base64.urlsafe_b64decode(s.encode("ascii"))


def _sign(payload_b64: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        payload_b64.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def _encode(payload: dict[str, Any], secret: str) -> str:
    payload_json = json.dumps(payload, separators=(",", ":"))
    payload_b64 = _b64url_encode(payload_json.encode("utf-8"))
    return f"{payload_b64}.{_sign(payload_b64, secret)}"


def _decode(
    token: str, secret: str, now: float
) -> Result[dict[str, Any], TokenError]:
    if not isinstance(token, str) or "." not in token:           # TOKEN-MALFORMED
        return Err(TokenError.MALFORMED)

    payload_b64, provided_sig = token.split(".", 1)
    if not payload_b64.isascii():                                 # TOKEN-MALFORMED
        return Err(TokenError.MALFORMED)

    expected_sig = _sign(payload_b64, secret)
    if not hmac.compare_digest(
        provided_sig.encode("utf-8", "replace"), expected_sig.encode("ascii")
    ):                                                            # TOKEN-BAD-SIG
        return Err(TokenError.SIGNATURE_INVALID)

    try:
        payload = json.loads(_b64url_decode(payload_b64))
    except (binascii.Error, ValueError):                          # TOKEN-MALFORMED
        return Err(TokenError.MALFORMED)
    if not isinstance(payload, dict):
        return Err(TokenError.MALFORMED)

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        return Err(TokenError.MALFORMED)
    if now >= exp:                                                # TOKEN-EXPIRED
        return Err(TokenError.EXPIRED)

    return Ok(payload)                                            # TOKEN-VALID


def fingerprint(token: str) -> str:
    """Stored form of a refresh token: its SHA-256 hex digest."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def fingerprints_match(token: str, stored: str | None) -> bool:
    if stored is None:
        return False
    return hmac.compare_digest(fingerprint(token), stored)


# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------

class TokenIssuer:
    """Signs and verifies the two token kinds with their own secrets."""

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._access_secret = settings.jwt_secret
        self._refresh_secret = settings.jwt_refresh_secret
        self.access_ttl = settings.access_token_ttl_seconds
        self.refresh_ttl = settings.refresh_token_ttl_seconds
        self._clock = clock

    def issue_access(self, identity: IdentityClaims) -> str:
        now = self._clock()
        return _encode(
            {
                "sub": identity.account_id,
                "email": identity.email,
                "role": identity.role.value,
                "iat": now,
                "exp": now + self.access_ttl,
            },
            self._access_secret,
        )

    def issue_refresh(self, account_id: str) -> str:
        if not account_id:
            raise ValueError("Token subject must not be empty")
        now = self._clock()
        return _encode(
            {
                "sub": account_id,
                "jti": secrets.token_hex(8),
                "iat": now,
                "exp": now + self.refresh_ttl,
            },
            self._refresh_secret,
        )

    def verify_access(self, token: str) -> Result[AccessClaims, TokenError]:
        decoded = _decode(token, self._access_secret, self._clock())
        if isinstance(decoded, Err):
            return decoded
        payload = decoded.value
        try:
            claims = AccessClaims(
                account_id=payload["sub"],
                email=payload["email"],
                role=payload["role"],
                issued_at=payload["iat"],
                expires_at=payload["exp"],
            )
        except (KeyError, ValidationError):
            return Err(TokenError.MALFORMED)
        return Ok(claims)

    def verify_refresh(self, token: str) -> Result[RefreshClaims, TokenError]:
        decoded = _decode(token, self._refresh_secret, self._clock())
        if isinstance(decoded, Err):
            return decoded
        payload = decoded.value
        try:
            claims = RefreshClaims(
                account_id=payload["sub"],
                token_id=payload["jti"],
                issued_at=payload["iat"],
                expires_at=payload["exp"],
            )
        except (KeyError, ValidationError):
            return Err(TokenError.MALFORMED)
        return Ok(claims)
