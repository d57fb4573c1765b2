"""Request authentication and role-based authorization.

``RequestAuthenticator`` turns a raw ``Authorization`` header into
verified ``AccessClaims``; ``RoleAuthorizer`` compares those claims with
an operation's allow-list. Both return results. The FastAPI dependencies
at the bottom adapt them to endpoints and raise ``HTTPException``.

Branches: AUTHN-NO-HEADER, AUTHN-BAD-SCHEME, AUTHN-INVALID,
AUTHN-EXPIRED, AUTHN-OK, AUTHZ-NO-CLAIMS, AUTHZ-ALLOWED, AUTHZ-DENIED
"""
from __future__ import annotations

from typing import Callable

from fastapi import Depends, Header, HTTPException, Request

from config import Settings
from contracts import BEARER_PREFIX
from logs import get_logger
from models import AccessClaims, Role
from results import AuthError, Err, Ok, Result, TokenError
from store import AccountNotFoundError, AccountStore
from tokens import TokenIssuer

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Allow-lists
# ---------------------------------------------------------------------------

SUPER_ADMIN_ONLY: frozenset[Role] = frozenset({Role.SUPER_ADMIN})
HR_OR_ABOVE: frozenset[Role] = frozenset({Role.HR, Role.SUPER_ADMIN})
MANAGER_OR_ABOVE: frozenset[Role] = frozenset(
    {Role.MANAGER, Role.HR, Role.SUPER_ADMIN}
)
ANY_ROLE: frozenset[Role] = frozenset(Role)

_TOKEN_ERRORS: dict[TokenError, AuthError] = {
    TokenError.MALFORMED: AuthError.UNAUTHORIZED,
    TokenError.SIGNATURE_INVALID: AuthError.UNAUTHORIZED,
    TokenError.EXPIRED: AuthError.TOKEN_EXPIRED,
}


# ---------------------------------------------------------------------------
# Core gates
# ---------------------------------------------------------------------------

class RequestAuthenticator:
    """Verify the bearer access token on an inbound request.

    The store is only consulted when ``settings.auth_recheck_active`` is
    set; otherwise a deactivated account keeps access until its access
    token expires.
    """

    def __init__(
        self,
        settings: Settings,
        issuer: TokenIssuer,
        store: AccountStore | None = None,
    ) -> None:
        self.issuer = issuer
        self.store = store
        self.recheck_active = settings.auth_recheck_active and store is not None

    def authenticate(
        self, authorization: str | None
    ) -> Result[AccessClaims, AuthError]:
        if not authorization:                                     # AUTHN-NO-HEADER
            return Err(AuthError.UNAUTHORIZED)

        if not authorization.startswith(BEARER_PREFIX):           # AUTHN-BAD-SCHEME
            return Err(AuthError.UNAUTHORIZED)

        token = authorization[len(BEARER_PREFIX):]
        verified = self.issuer.verify_access(token)
        if isinstance(verified, Err):                             # AUTHN-INVALID / AUTHN-EXPIRED
            return Err(_TOKEN_ERRORS[verified.kind])

        claims = verified.value
        if self.recheck_active:
            try:
                account = self.store.get(claims.account_id)
            except AccountNotFoundError:
                return Err(AuthError.UNAUTHORIZED)
            if not account.is_active:
                return Err(AuthError.ACCOUNT_INACTIVE)

        return Ok(claims)                                         # AUTHN-OK


class RoleAuthorizer:
    """Explicit allow-list check; roles carry no implied rank."""

    def authorize(
        self,
        claims: AccessClaims | None,
        allowed: frozenset[Role],
    ) -> Result[AccessClaims, AuthError]:
        if claims is None:                                        # AUTHZ-NO-CLAIMS
            return Err(AuthError.UNAUTHORIZED)
        if claims.role in allowed:                                # AUTHZ-ALLOWED
            return Ok(claims)
        return Err(AuthError.FORBIDDEN)                           # AUTHZ-DENIED


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

STATUS_FOR_ERROR: dict[AuthError, int] = {
    AuthError.INVALID_CREDENTIALS: 401,
    AuthError.ACCOUNT_INACTIVE: 401,
    AuthError.UNAUTHORIZED: 401,
    AuthError.TOKEN_EXPIRED: 401,
    AuthError.REFRESH_TOKEN_INVALID: 401,
    AuthError.FORBIDDEN: 403,
    AuthError.NOT_HR_ACCOUNT: 403,
    AuthError.DUPLICATE_ACCOUNT: 400,
    AuthError.ACCOUNT_NOT_FOUND: 404,
}


def auth_http_error(kind: AuthError) -> HTTPException:
    status = STATUS_FOR_ERROR[kind]
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return HTTPException(status_code=status, detail=kind.message, headers=headers)


async def get_current_claims(
    request: Request,
    authorization: str | None = Header(default=None),
) -> AccessClaims:
    """Dependency: verify the bearer token and attach its claims.

    The claims are stored on ``request.state.claims`` for handlers that
    read the request directly.
    """
    authenticator: RequestAuthenticator = request.app.state.authenticator
    result = authenticator.authenticate(authorization)
    if isinstance(result, Err):
        raise auth_http_error(result.kind)
    request.state.claims = result.value
    return result.value


def require_roles(allowed: frozenset[Role]) -> Callable:
    """Dependency factory: require the caller's role to be in ``allowed``."""

    async def _check_role(
        request: Request,
        _: AccessClaims = Depends(get_current_claims),
    ) -> AccessClaims:
        authorizer: RoleAuthorizer = request.app.state.authorizer
        claims = getattr(request.state, "claims", None)
        result = authorizer.authorize(claims, allowed)
        if isinstance(result, Err):
            logger.info(
                "authorization_denied",
                account_id=getattr(claims, "account_id", None),
                reason=result.kind.value,
            )
            raise auth_http_error(result.kind)
        return result.value

    return _check_role
