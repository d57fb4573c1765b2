"""Credential store: one record per account.

``AccountStore`` is the interface the auth core depends on;
``InMemoryAccountStore`` implements it for tests and single-process
deployments. Every write validates the record against
``contracts.ACCOUNT_RULES`` and is applied to that one record
atomically; concurrent fingerprint writes resolve as last write wins.

Infrastructure failures surface as ``StoreError`` and are never
interpreted as authentication outcomes.
"""
from __future__ import annotations

import threading
from typing import Protocol

from contracts import ValidationReport, validate_account
from models import Account, Role, _utcnow, normalize_email


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class StoreError(Exception):
    """Raised when the backing store cannot serve a request."""


class AccountNotFoundError(Exception):
    """Raised when an account lookup fails."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Account not found: {identifier}")


class DuplicateAccountError(Exception):
    """Raised when an email is already registered."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email already registered: {email}")


class AccountValidationError(StoreError):
    """Raised when a record about to be written breaks an account rule."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        super().__init__(report.summary())


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class AccountStore(Protocol):
    def insert(self, account: Account) -> Account: ...

    def get(self, account_id: str) -> Account: ...

    def get_by_email(self, email: str) -> Account: ...

    def set_refresh_fingerprint(
        self, account_id: str, fingerprint: str | None
    ) -> None: ...

    def set_active(self, account_id: str, is_active: bool) -> Account: ...

    def list_by_role(self, role: Role) -> list[Account]: ...


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class InMemoryAccountStore:
    """Thread-safe in-memory account store."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._by_email: dict[str, str] = {}  # email -> account_id
        self._lock = threading.Lock()

    def _validate_or_raise(self, account: Account) -> None:
        report = validate_account(account)
        if not report.passed:
            raise AccountValidationError(report)

    def insert(self, account: Account) -> Account:
        """Store a new account; the email must not be registered yet."""
        self._validate_or_raise(account)
        with self._lock:
            if account.email in self._by_email:
                raise DuplicateAccountError(account.email)
            self._accounts[account.id] = account
            self._by_email[account.email] = account.id
        return account

    def get(self, account_id: str) -> Account:
        """Retrieve an account by id."""
        try:
            return self._accounts[account_id]
        except KeyError:
            raise AccountNotFoundError(account_id) from None

    def get_by_email(self, email: str) -> Account:
        """Retrieve an account by case-insensitive email."""
        account_id = self._by_email.get(normalize_email(email))
        if account_id is None:
            raise AccountNotFoundError(email)
        return self._accounts[account_id]

    def _update(self, account_id: str, **changes) -> Account:
        with self._lock:
            existing = self.get(account_id)
            updated = existing.model_copy(
                update={**changes, "updated_at": _utcnow()}
            )
            self._validate_or_raise(updated)
            self._accounts[account_id] = updated
        return updated

    def set_refresh_fingerprint(
        self, account_id: str, fingerprint: str | None
    ) -> None:
        """Overwrite (or clear, with ``None``) the stored fingerprint.

        Clearing an unknown account is a no-op.
        """
        try:
            self._update(account_id, refresh_fingerprint=fingerprint)
        except AccountNotFoundError:
            if fingerprint is not None:
                raise

    def set_active(self, account_id: str, is_active: bool) -> Account:
        return self._update(account_id, is_active=is_active)

    def list_by_role(self, role: Role) -> list[Account]:
        """Accounts holding ``role``, newest first."""
        with self._lock:
            items = [a for a in reversed(self._accounts.values()) if a.role is role]
        items.sort(key=lambda a: a.created_at, reverse=True)
        return items

    def count(self) -> int:
        return len(self._accounts)

    def clear(self) -> None:
        """Remove all accounts (useful for testing)."""
        with self._lock:
            self._accounts.clear()
            self._by_email.clear()
