"""Session management: register, login, refresh, logout.

A session moves Anonymous -> Authenticated on login and back on logout
or when its refresh token stops matching the stored fingerprint. Each
account holds at most one live refresh token: a new login overwrites the
fingerprint and so invalidates every earlier refresh token.

Every decision branch is annotated with its branch id (see
``contracts.BRANCHES``).
"""
from __future__ import annotations

from config import Settings
from logs import get_logger
from models import (
    DEFAULT_ROLE,
    Account,
    AccountPublic,
    IdentityClaims,
    LoginResponse,
    RefreshResponse,
    Role,
    _new_id,
    _utcnow,
    normalize_email,
)
from passwords import PasswordHasher
from results import AuthError, Err, Ok, Result
from store import AccountNotFoundError, AccountStore, DuplicateAccountError
from tokens import TokenIssuer, fingerprint, fingerprints_match

logger = get_logger(__name__)


def _identity(account: Account) -> IdentityClaims:
    return IdentityClaims(
        account_id=account.id, email=account.email, role=account.role
    )


class SessionManager:
    """Orchestrates credential checks, token issuing, and fingerprints."""

    def __init__(
        self,
        settings: Settings,
        store: AccountStore,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
    ) -> None:
        self.settings = settings
        self.store = store
        self.hasher = hasher
        self.issuer = issuer

    # -- Registration -------------------------------------------------------

    def create_account(
        self,
        email: str,
        password: str,
        role: Role = DEFAULT_ROLE,
    ) -> Result[Account, AuthError]:
        """Hash the password and persist a new active account.

        Branches: REG-SUCCESS, REG-DUP
        """
        email = normalize_email(email)
        if self._email_taken(email):                              # REG-DUP
            logger.info("register_rejected", reason="duplicate")
            return Err(AuthError.DUPLICATE_ACCOUNT)

        now = _utcnow()
        account = Account(
            id=_new_id(),
            email=email,
            password_hash=self.hasher.hash(password),
            role=role,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            self.store.insert(account)
        except DuplicateAccountError:                             # REG-DUP
            logger.info("register_rejected", reason="duplicate")
            return Err(AuthError.DUPLICATE_ACCOUNT)
        logger.info("account_created", account_id=account.id,     # REG-SUCCESS
                    role=account.role.value)
        return Ok(account)

    def _email_taken(self, email: str) -> bool:
        try:
            self.store.get_by_email(email)
        except AccountNotFoundError:
            return False
        return True

    def register(
        self,
        email: str,
        password: str,
        role: Role | None = None,
    ) -> Result[AccountPublic, AuthError]:
        result = self.create_account(email, password, role or DEFAULT_ROLE)
        if isinstance(result, Err):
            return result
        return Ok(result.value.public())

    # -- Login ---------------------------------------------------------------

    def login(self, email: str, password: str) -> Result[LoginResponse, AuthError]:
        """Verify credentials and issue an access/refresh token pair.

        Unknown email and wrong password fail identically.

        Branches: LOGIN-SUCCESS, LOGIN-NO-ACCOUNT, LOGIN-INACTIVE,
        LOGIN-BAD-PASS
        """
        try:
            account = self.store.get_by_email(normalize_email(email))
        except AccountNotFoundError:                              # LOGIN-NO-ACCOUNT
            self.hasher.verify_dummy(password)
            logger.info("login_failed", reason=AuthError.INVALID_CREDENTIALS.value)
            return Err(AuthError.INVALID_CREDENTIALS)

        if not account.is_active:                                 # LOGIN-INACTIVE
            logger.info("login_failed", account_id=account.id,
                        reason=AuthError.ACCOUNT_INACTIVE.value)
            return Err(AuthError.ACCOUNT_INACTIVE)

        if not self.hasher.verify(password, account.password_hash):  # LOGIN-BAD-PASS
            logger.info("login_failed", reason=AuthError.INVALID_CREDENTIALS.value)
            return Err(AuthError.INVALID_CREDENTIALS)

        # LOGIN-SUCCESS
        access_token = self.issuer.issue_access(_identity(account))
        refresh_token = self.issuer.issue_refresh(account.id)
        self.store.set_refresh_fingerprint(account.id, fingerprint(refresh_token))
        logger.info("login_succeeded", account_id=account.id)
        return Ok(
            LoginResponse(
                access_token=access_token,
                refresh_token=refresh_token,
                user=account.public(),
            )
        )

    # -- Refresh -------------------------------------------------------------

    def refresh(self, presented: str) -> Result[RefreshResponse, AuthError]:
        """Issue a new access token for a live refresh token.

        The refresh token itself is not rotated.

        Branches: REFRESH-SUCCESS, REFRESH-BAD-TOKEN, REFRESH-INACTIVE,
        REFRESH-SUPERSEDED
        """
        verified = self.issuer.verify_refresh(presented)
        if isinstance(verified, Err):                             # REFRESH-BAD-TOKEN
            logger.info("refresh_failed", reason=verified.kind.value)
            return Err(AuthError.REFRESH_TOKEN_INVALID)

        account_id = verified.value.account_id
        try:
            account = self.store.get(account_id)
        except AccountNotFoundError:
            account = None
        if account is None or not account.is_active:              # REFRESH-INACTIVE
            logger.info("refresh_failed", account_id=account_id,
                        reason=AuthError.ACCOUNT_INACTIVE.value)
            return Err(AuthError.ACCOUNT_INACTIVE)

        if not fingerprints_match(presented, account.refresh_fingerprint):  # REFRESH-SUPERSEDED
            logger.warning("refresh_failed", account_id=account_id,
                           reason="superseded")
            return Err(AuthError.REFRESH_TOKEN_INVALID)

        # REFRESH-SUCCESS
        return Ok(
            RefreshResponse(access_token=self.issuer.issue_access(_identity(account)))
        )

    # -- Logout --------------------------------------------------------------

    def logout(self, account_id: str) -> Result[None, AuthError]:
        """Clear the stored fingerprint. Safe to repeat.

        Branches: LOGOUT-CLEAR
        """
        self.store.set_refresh_fingerprint(account_id, None)     # LOGOUT-CLEAR
        logger.info("logout", account_id=account_id)
        return Ok(None)

    # -- Current account -------------------------------------------------------

    def current_account(self, account_id: str) -> Result[AccountPublic, AuthError]:
        try:
            account = self.store.get(account_id)
        except AccountNotFoundError:
            return Err(AuthError.UNAUTHORIZED)
        if not account.is_active:
            return Err(AuthError.ACCOUNT_INACTIVE)
        return Ok(account.public())
