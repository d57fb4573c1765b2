"""FastAPI REST endpoints.

Routes
------
POST   /auth/login                Log in and receive access + refresh tokens
POST   /auth/register             Register a new account
POST   /auth/refresh              Exchange a refresh token for an access token
POST   /auth/logout               Invalidate the stored refresh token
GET    /auth/me                   Current account

HR administration (SUPER_ADMIN only)
------------------------------------
POST   /admin/hr                  Create an HR account
GET    /admin/hr                  List HR accounts
PATCH  /admin/hr/{id}/status      Activate or deactivate an HR account

GET    /health                    Liveness check
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from hr_admin import HrAdminService
from middleware import SUPER_ADMIN_ONLY, auth_http_error, get_current_claims, require_roles
from models import (
    AccessClaims,
    CreateHrRequest,
    HealthResponse,
    HrAccountView,
    HrCreatedResponse,
    HrListResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UpdateHrStatusRequest,
    UserResponse,
)
from results import Err, Result
from sessions import SessionManager


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_hr_admin(request: Request) -> HrAdminService:
    return request.app.state.hr_admin


def _unwrap(result: Result):
    if isinstance(result, Err):
        raise auth_http_error(result.kind)
    return result.value


# ---------------------------------------------------------------------------
# Auth router
# ---------------------------------------------------------------------------

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> LoginResponse:
    """Authenticate and receive an access/refresh token pair."""
    return _unwrap(sessions.login(payload.email, payload.password))


@auth_router.post("/register", response_model=UserResponse, status_code=201)
def register(
    payload: RegisterRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> UserResponse:
    """Register a new account."""
    user = _unwrap(sessions.register(payload.email, payload.password, payload.role))
    return UserResponse(user=user)


@auth_router.post("/refresh", response_model=RefreshResponse)
def refresh(
    payload: RefreshRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> RefreshResponse:
    """Exchange a live refresh token for a new access token."""
    return _unwrap(sessions.refresh(payload.refresh_token))


@auth_router.post("/logout")
def logout(
    claims: AccessClaims = Depends(get_current_claims),
    sessions: SessionManager = Depends(get_sessions),
) -> dict:
    """Invalidate the caller's refresh token."""
    _unwrap(sessions.logout(claims.account_id))
    return {}


@auth_router.get("/me", response_model=UserResponse)
def get_me(
    claims: AccessClaims = Depends(get_current_claims),
    sessions: SessionManager = Depends(get_sessions),
) -> UserResponse:
    """Get the current authenticated account."""
    return UserResponse(user=_unwrap(sessions.current_account(claims.account_id)))


# ---------------------------------------------------------------------------
# HR administration router
# ---------------------------------------------------------------------------

admin_router = APIRouter(
    prefix="/admin/hr",
    tags=["admin"],
    dependencies=[Depends(require_roles(SUPER_ADMIN_ONLY))],
)


@admin_router.post("", response_model=HrCreatedResponse, status_code=201)
def create_hr(
    payload: CreateHrRequest,
    service: HrAdminService = Depends(get_hr_admin),
) -> HrCreatedResponse:
    """Create an HR account."""
    return _unwrap(service.create_hr(payload.email, payload.password))


@admin_router.get("", response_model=HrListResponse)
def list_hr(service: HrAdminService = Depends(get_hr_admin)) -> HrListResponse:
    """List HR accounts, newest first."""
    return service.list_hr()


@admin_router.patch("/{account_id}/status", response_model=HrAccountView)
def update_hr_status(
    account_id: str,
    payload: UpdateHrStatusRequest,
    service: HrAdminService = Depends(get_hr_admin),
) -> HrAccountView:
    """Activate or deactivate an HR account."""
    return _unwrap(service.set_hr_status(account_id, payload.is_active))


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()
