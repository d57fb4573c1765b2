"""Executable contracts for the HR auth core.

Holds the constants every component agrees on, the rules an account
record must satisfy on every store write, and the branch map: each
decision point in the implementation carries a branch id in a trailing
comment so white-box tests can trace coverage back to it.

Layers
------
Rule              named validation predicate over an Account
ValidationReport  outcome of running every rule against one record
BranchSpec        every decision point white-box tests must cover
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

# ---------------------------------------------------------------------------
# Configuration constants
# ---------------------------------------------------------------------------

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
MIN_SECRET_LENGTH = 32
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
_HEX_PATTERN = re.compile(r"[0-9a-f]+")
HASH_ALGORITHM = "pbkdf2_sha256"
DEFAULT_HASH_ITERATIONS = 100_000
MIN_HASH_ITERATIONS = 1_000
ACCESS_TOKEN_TTL = 15 * 60            # 15 minutes
REFRESH_TOKEN_TTL = 7 * 24 * 60 * 60  # 7 days
BEARER_PREFIX = "Bearer "
GENERATED_PASSWORD_LENGTH = 16
GENERATED_PASSWORD_ALPHABET = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!@#$%^&*"
)


# ---------------------------------------------------------------------------
# Rule: a named, executable predicate over an account record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    """A named validation rule for account records."""

    id: str
    name: str
    description: str
    check: Callable[[Any], bool]


def _account_has_id(a: Any) -> bool:
    return bool(getattr(a, "id", None))


def _account_email_normalized(a: Any) -> bool:
    email = getattr(a, "email", "")
    return bool(email) and email == email.strip().lower()


def _account_email_format(a: Any) -> bool:
    return bool(EMAIL_PATTERN.match(getattr(a, "email", "")))


def _account_hash_format(a: Any) -> bool:
    parts = getattr(a, "password_hash", "").split("$")
    return (
        len(parts) == 4
        and parts[0] == HASH_ALGORITHM
        and parts[1].isdecimal()
        and _is_hex(parts[2])
        and _is_hex(parts[3])
    )


def _account_role_known(a: Any) -> bool:
    from models import Role

    return isinstance(getattr(a, "role", None), Role)


def _account_active_is_bool(a: Any) -> bool:
    return isinstance(getattr(a, "is_active", None), bool)


def _account_time_order(a: Any) -> bool:
    created = getattr(a, "created_at", None)
    updated = getattr(a, "updated_at", None)
    if created is None or updated is None:
        return False
    return updated >= created


def _account_fingerprint_format(a: Any) -> bool:
    fp = getattr(a, "refresh_fingerprint", None)
    return fp is None or (len(fp) == 64 and _is_hex(fp))


ACCOUNT_RULES: list[Rule] = [
    Rule(
        id="ACCOUNT-ID",
        name="account_has_id",
        description="Account must have a non-empty id",
        check=_account_has_id,
    ),
    Rule(
        id="ACCOUNT-EMAIL-NORM",
        name="account_email_normalized",
        description="Email must be trimmed and lower-cased",
        check=_account_email_normalized,
    ),
    Rule(
        id="ACCOUNT-EMAIL-FMT",
        name="account_email_format",
        description="Email must match ^\\S+@\\S+\\.\\S+$",
        check=_account_email_format,
    ),
    Rule(
        id="ACCOUNT-HASH",
        name="account_hash_format",
        description="Password hash must be pbkdf2_sha256$iterations$salt$digest",
        check=_account_hash_format,
    ),
    Rule(
        id="ACCOUNT-ROLE",
        name="account_role_known",
        description="Role must be a member of the Role enumeration",
        check=_account_role_known,
    ),
    Rule(
        id="ACCOUNT-ACTIVE",
        name="account_active_is_bool",
        description="is_active must be a boolean",
        check=_account_active_is_bool,
    ),
    Rule(
        id="ACCOUNT-TIME-ORDER",
        name="account_time_order",
        description="updated_at must not be earlier than created_at",
        check=_account_time_order,
    ),
    Rule(
        id="ACCOUNT-FINGERPRINT",
        name="account_fingerprint_format",
        description="Refresh fingerprint must be absent or a SHA-256 hex digest",
        check=_account_fingerprint_format,
    ),
]


# ---------------------------------------------------------------------------
# Validation report
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationResult:
    rule_id: str
    rule_name: str
    passed: bool
    description: str


@dataclass(frozen=True)
class ValidationReport:
    results: list[ValidationResult]

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[ValidationResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        total = len(self.results)
        failed = len(self.failures)
        if failed == 0:
            return f"All {total} rules passed"
        lines = [f"{failed}/{total} rules failed:"]
        for f in self.failures:
            lines.append(f"  [{f.rule_id}] {f.rule_name}: {f.description}")
        return "\n".join(lines)


def validate_account(account: Any) -> ValidationReport:
    """Run every account rule against a record and return a report."""
    results = []
    for rule in ACCOUNT_RULES:
        try:
            passed = rule.check(account)
        except (AttributeError, TypeError, ValueError):
            passed = False
        results.append(
            ValidationResult(
                rule_id=rule.id,
                rule_name=rule.name,
                passed=passed,
                description=rule.description,
            )
        )
    return ValidationReport(results=results)


# ---------------------------------------------------------------------------
# Branch map
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BranchSpec:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str
    operation: str


BRANCHES: list[BranchSpec] = [
    # Password hashing
    BranchSpec("HASH-EMPTY", "Empty password rejected",
               "password == ''", "hash"),
    BranchSpec("HASH-LONG", "Over-long password rejected",
               "len(password) > MAX_PASSWORD_LENGTH", "hash"),
    BranchSpec("HASH-OK", "Password hashed with configured cost",
               "0 < len(password) <= MAX_PASSWORD_LENGTH", "hash"),
    # Password verification
    BranchSpec("VERIFY-MATCH", "Password matches stored digest",
               "computed == stored", "verify"),
    BranchSpec("VERIFY-MISMATCH", "Password does not match stored digest",
               "computed != stored", "verify"),
    BranchSpec("VERIFY-BAD-FMT", "Stored digest is malformed",
               "digest does not parse", "verify"),
    # Token verification
    BranchSpec("TOKEN-VALID", "Token passes every check",
               "signature valid, payload parses, not expired", "verify_token"),
    BranchSpec("TOKEN-MALFORMED", "Token cannot be split or decoded",
               "no separator, bad base64, bad JSON or bad claims", "verify_token"),
    BranchSpec("TOKEN-BAD-SIG", "Token signature mismatch",
               "hmac(payload, secret) != signature", "verify_token"),
    BranchSpec("TOKEN-EXPIRED", "Token expiry has passed",
               "now >= exp", "verify_token"),
    # Registration
    BranchSpec("REG-SUCCESS", "Account registered",
               "email not taken", "register"),
    BranchSpec("REG-DUP", "Registration rejected: email taken",
               "email already stored", "register"),
    # Login
    BranchSpec("LOGIN-SUCCESS", "Login issues both tokens",
               "account active and password matches", "login"),
    BranchSpec("LOGIN-NO-ACCOUNT", "Login fails: unknown email",
               "no account for normalized email", "login"),
    BranchSpec("LOGIN-INACTIVE", "Login fails: account inactive",
               "account.is_active is False", "login"),
    BranchSpec("LOGIN-BAD-PASS", "Login fails: wrong password",
               "verify(password, hash) is False", "login"),
    # Refresh
    BranchSpec("REFRESH-SUCCESS", "Refresh issues a new access token",
               "token valid, account active, fingerprint matches", "refresh"),
    BranchSpec("REFRESH-BAD-TOKEN", "Refresh fails: token does not verify",
               "verify_refresh returns an error", "refresh"),
    BranchSpec("REFRESH-INACTIVE", "Refresh fails: account missing or inactive",
               "account absent or is_active is False", "refresh"),
    BranchSpec("REFRESH-SUPERSEDED", "Refresh fails: fingerprint mismatch",
               "fingerprint(token) != account.refresh_fingerprint", "refresh"),
    # Logout
    BranchSpec("LOGOUT-CLEAR", "Logout clears the stored fingerprint",
               "always", "logout"),
    # Request authentication
    BranchSpec("AUTHN-NO-HEADER", "No credential header",
               "authorization header missing", "authenticate"),
    BranchSpec("AUTHN-BAD-SCHEME", "Credential header without bearer prefix",
               "not header.startswith('Bearer ')", "authenticate"),
    BranchSpec("AUTHN-INVALID", "Access token malformed or badly signed",
               "verify_access returns MALFORMED or SIGNATURE_INVALID", "authenticate"),
    BranchSpec("AUTHN-EXPIRED", "Access token expired",
               "verify_access returns EXPIRED", "authenticate"),
    BranchSpec("AUTHN-OK", "Access token verified",
               "verify_access returns claims", "authenticate"),
    # Role authorization
    BranchSpec("AUTHZ-NO-CLAIMS", "Authorization attempted without claims",
               "claims is None", "authorize"),
    BranchSpec("AUTHZ-ALLOWED", "Role is on the allow-list",
               "claims.role in allowed", "authorize"),
    BranchSpec("AUTHZ-DENIED", "Role is not on the allow-list",
               "claims.role not in allowed", "authorize"),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_hex(s: str) -> bool:
    """Check if a string is non-empty lower-case hexadecimal."""
    return isinstance(s, str) and _HEX_PATTERN.fullmatch(s) is not None
