"""Password hashing (PBKDF2-HMAC-SHA256).

Digests are self-describing: ``pbkdf2_sha256$iterations$salt_hex$digest_hex``.
Verification reads the iteration count from the digest, so raising the
configured cost only affects newly created digests.

Every decision branch is annotated with its branch id (see
``contracts.BRANCHES``).
"""
from __future__ import annotations

import hashlib
import hmac
import os

from contracts import DEFAULT_HASH_ITERATIONS, HASH_ALGORITHM, MAX_PASSWORD_LENGTH

_SALT_BYTES = 16


class PasswordHasher:
    """One-way adaptive password hashing with a per-digest salt."""

    def __init__(self, iterations: int = DEFAULT_HASH_ITERATIONS) -> None:
        self.iterations = iterations
        self._dummy_digest = self.hash(os.urandom(12).hex())

    def hash(self, password: str) -> str:
        """Hash a plaintext password.

        Branches: HASH-EMPTY, HASH-LONG, HASH-OK
        """
        if not password:                                          # HASH-EMPTY
            raise ValueError("Password must not be empty")

        if len(password) > MAX_PASSWORD_LENGTH:                   # HASH-LONG
            raise ValueError(
                f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
            )

        # HASH-OK
        salt = os.urandom(_SALT_BYTES)
        digest = _derive(password, salt, self.iterations)
        return f"{HASH_ALGORITHM}${self.iterations}${salt.hex()}${digest.hex()}"

    def verify(self, password: str, stored_hash: str) -> bool:
        """Check a plaintext password against a stored digest.

        Returns False instead of raising when the digest is malformed.

        Branches: VERIFY-MATCH, VERIFY-MISMATCH, VERIFY-BAD-FMT
        """
        parsed = _parse(stored_hash)
        if parsed is None:                                        # VERIFY-BAD-FMT
            return False
        if not password or len(password) > MAX_PASSWORD_LENGTH:
            return False

        iterations, salt, expected = parsed
        computed = _derive(password, salt, iterations)

        if hmac.compare_digest(computed, expected):               # VERIFY-MATCH
            return True
        return False                                              # VERIFY-MISMATCH

    def verify_dummy(self, password: str) -> bool:
        """Pay one verification's cost when there is no digest to check."""
        self.verify(password or "-", self._dummy_digest)
        return False


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt, iterations
    )


def _parse(stored_hash: str) -> tuple[int, bytes, bytes] | None:
    if not isinstance(stored_hash, str):
        return None
    parts = stored_hash.split("$")
    if len(parts) != 4 or parts[0] != HASH_ALGORITHM:
        return None
    iterations_str, salt_hex, digest_hex = parts[1:]
    if not iterations_str.isdecimal() or int(iterations_str) < 1:
        return None
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return None
    if not salt or not expected:
        return None
    return int(iterations_str), salt, expected
