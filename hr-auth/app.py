"""Application factory and entry point.

Run with:
    uvicorn app:create_app --factory

Settings come from the environment; the process refuses to start when
either signing secret is missing, shorter than 32 characters, or equal
to the other.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api import admin_router, auth_router, health_router
from config import Settings, load_settings
from hr_admin import HrAdminService, seed_super_admin
from logs import configure_logging, get_logger
from middleware import RequestAuthenticator, RoleAuthorizer
from passwords import PasswordHasher
from sessions import SessionManager
from store import AccountStore, InMemoryAccountStore, StoreError
from tokens import TokenIssuer

logger = get_logger(__name__)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(
        "store_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


def create_app(
    settings: Settings | None = None,
    store: AccountStore | None = None,
    issuer: TokenIssuer | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts optional settings, store, and issuer for testing.
    """
    if settings is None:
        settings = load_settings()
    if store is None:
        store = InMemoryAccountStore()
    if issuer is None:
        issuer = TokenIssuer(settings)

    configure_logging(settings.log_level, settings.log_json)

    hasher = PasswordHasher(settings.password_hash_iterations)
    sessions = SessionManager(settings, store, hasher, issuer)

    if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        seed_super_admin(
            sessions,
            settings.bootstrap_admin_email,
            settings.bootstrap_admin_password,
        )

    app = FastAPI(
        title="HR Auth API",
        description=(
            "Authentication and authorization core for the HR system: "
            "login, token refresh, logout, and role-gated administration."
        ),
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = sessions
    app.state.authenticator = RequestAuthenticator(settings, issuer, store)
    app.state.authorizer = RoleAuthorizer()
    app.state.hr_admin = HrAdminService(sessions)

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StoreError, _store_error_handler)

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(health_router)
    return app
