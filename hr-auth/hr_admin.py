"""HR account administration.

Super-admins create, list, and (de)activate HR accounts. Deactivation is
a soft delete: the record stays, and login and refresh start failing
with ``ACCOUNT_INACTIVE``.
"""
from __future__ import annotations

import secrets

from contracts import GENERATED_PASSWORD_ALPHABET, GENERATED_PASSWORD_LENGTH
from logs import get_logger
from models import HrAccountView, HrCreatedResponse, HrListResponse, Role
from results import AuthError, Err, Ok, Result
from sessions import SessionManager
from store import AccountNotFoundError

logger = get_logger(__name__)


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Random password drawn from letters, digits, and symbols.

    Redraws until every character class is present so the result passes
    the same strength rules as a user-chosen password.
    """
    while True:
        password = "".join(
            secrets.choice(GENERATED_PASSWORD_ALPHABET) for _ in range(length)
        )
        if (
            any(c.islower() for c in password)
            and any(c.isupper() for c in password)
            and any(c.isdigit() for c in password)
            and any(not c.isalnum() for c in password)
        ):
            return password


class HrAdminService:
    def __init__(self, sessions: SessionManager) -> None:
        self.sessions = sessions
        self.store = sessions.store

    def create_hr(
        self, email: str, password: str | None = None
    ) -> Result[HrCreatedResponse, AuthError]:
        """Create an active HR account, generating a password if none given."""
        generated = password is None
        if generated:
            password = generate_password()

        result = self.sessions.create_account(email, password, Role.HR)
        if isinstance(result, Err):
            return result

        account = result.value
        logger.info("hr_account_created", account_id=account.id,
                    generated=generated)
        return Ok(
            HrCreatedResponse(
                **account.hr_view().model_dump(),
                temporary_password=password if generated else None,
            )
        )

    def list_hr(self) -> HrListResponse:
        users = [a.hr_view() for a in self.store.list_by_role(Role.HR)]
        return HrListResponse(users=users, total=len(users))

    def set_hr_status(
        self, account_id: str, is_active: bool
    ) -> Result[HrAccountView, AuthError]:
        try:
            account = self.store.get(account_id)
        except AccountNotFoundError:
            return Err(AuthError.ACCOUNT_NOT_FOUND)
        if account.role is not Role.HR:
            return Err(AuthError.NOT_HR_ACCOUNT)

        updated = self.store.set_active(account_id, is_active)
        logger.info("hr_status_changed", account_id=account_id,
                    is_active=is_active)
        return Ok(updated.hr_view())


def seed_super_admin(sessions: SessionManager, email: str, password: str) -> bool:
    """Create the bootstrap SUPER_ADMIN unless the email already exists.

    Returns True when an account was created.
    """
    result = sessions.create_account(email, password, Role.SUPER_ADMIN)
    if isinstance(result, Ok):
        logger.info("super_admin_seeded", account_id=result.value.id)
        return True
    return False
