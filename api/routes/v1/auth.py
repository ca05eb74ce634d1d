"""
api/routes/v1/auth.py -- Authentication endpoints.

Routes:
  POST /api/v1/auth/login            -- organization-user login; returns token + user
  POST /api/v1/auth/admin/login      -- administrator login; same response shape
  POST /api/v1/auth/logout           -- clears the cookie; the token itself stays valid
  POST /api/v1/auth/change-password  -- requires auth; replaces the stored hash
  GET  /api/v1/auth/profile          -- requires auth; current account

Security:
  Both login routes are rate-limited per client IP (Settings.login_rate_limit).
  Unknown account and wrong password return the same 401 body. The
  authenticate_* helpers equalize timing between the two.
  A null or non-argon2 stored hash is a 500 "corrupt_credential", logged with
  the account id only.
  Cache-Control: no-store on login responses.
  No server-side session state exists: logout and password change leave
  already-issued tokens valid until they expire.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.errors import corrupt_credential, http_error, internal_error, not_found
from api.limiter import limiter
from api.models import (
    AdminLoginRequest,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    account_response,
)
from auth.dependencies import get_current_principal
from auth.errors import CorruptCredentialError, TokenSigningError
from auth.models import Admin, Principal, User
from auth.passwords import check_password_policy, hash_password, verify_password
from auth.store import AccountStore
from auth.tokens import account_claims, authenticate_admin, authenticate_user, create_access_token, set_auth_cookie
from core.config import get_settings
from core.models import AccountKind

logger = logging.getLogger("confreg.api.auth")

_settings = get_settings()

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _login_rate_limit() -> str:
    return _settings.login_rate_limit


def _bad_credentials() -> JSONResponse:
    resp = JSONResponse(
        status_code=401,
        content={"error": {"code": "invalid_credentials", "message": "Invalid credentials."}},
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _login_response(kind: AccountKind, account: Admin | User) -> JSONResponse:
    try:
        token = create_access_token(account_claims(kind, account))
    except TokenSigningError as exc:
        logger.error("Cannot issue token for %s:%s -- %s", kind.value, account.id, exc)
        raise internal_error() from exc

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            expires_in=_settings.token_expire_seconds,
            user=account_response(account),
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _corrupt(exc: CorruptCredentialError):
    logger.error("Login refused, corrupt credential for account %s: %s", exc.account_id, exc.reason)
    return corrupt_credential()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate an organization user by short code, username and password."""
    store: AccountStore = request.app.state.account_store
    try:
        user = authenticate_user(store, body.organization_short_code, body.username, body.password)
    except CorruptCredentialError as exc:
        raise _corrupt(exc) from exc
    if user is None:
        return _bad_credentials()
    logger.info("User %s logged in (org=%s)", user.id, user.organization_short_code)
    return _login_response(AccountKind.user, user)


@router.post("/auth/admin/login", response_model=LoginResponse)
@limiter.limit(_login_rate_limit)
def admin_login(request: Request, body: AdminLoginRequest) -> JSONResponse:
    """Authenticate an administrator by username and password."""
    store: AccountStore = request.app.state.account_store
    try:
        admin = authenticate_admin(store, body.username, body.password)
    except CorruptCredentialError as exc:
        raise _corrupt(exc) from exc
    if admin is None:
        return _bad_credentials()
    logger.info("Admin %s logged in", admin.id)
    return _login_response(AccountKind.admin, admin)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/logout", response_model=MessageResponse)
def logout(principal: Principal = Depends(get_current_principal)) -> JSONResponse:
    """Tell the client to discard its token and clear the cookie.

    Nothing changes server-side; the token remains valid until it expires.
    """
    resp = JSONResponse(content=MessageResponse(message="Logout successful").model_dump())
    resp.delete_cookie("access_token")
    return resp


@router.post("/auth/change-password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
) -> MessageResponse:
    """Replace the caller's password after checking the current one.

    Order of checks, all before any write:
      1. confirmation must equal the new password (400 password_mismatch),
         reported even when policy rules also fail;
      2. every policy rule the new password fails (422 password_policy);
      3. current password must verify (400 incorrect_password).
    """
    failed_rules = check_password_policy(body.new_password)
    if body.new_password != body.confirm_password:
        raise http_error(400, "password_mismatch", "Passwords do not match.")
    if failed_rules:
        raise http_error(
            422,
            "password_policy",
            "New password does not meet the password policy.",
            errors=[{"field": "newPassword", "rule": r.name, "message": r.message} for r in failed_rules],
        )

    try:
        matches = verify_password(principal.account.hashed_password, body.current_password, account_id=principal.id)
    except CorruptCredentialError as exc:
        raise _corrupt(exc) from exc
    if not matches:
        raise http_error(400, "incorrect_password", "Incorrect current password.")

    store: AccountStore = request.app.state.account_store
    if not store.update_password(principal.kind, principal.id, hash_password(body.new_password)):
        raise not_found("Account")
    logger.info("Password changed for %s:%s", principal.kind.value, principal.id)
    return MessageResponse(message="Password updated successfully.")


@router.get("/auth/profile", response_model=ProfileResponse)
def profile(principal: Principal = Depends(get_current_principal)) -> ProfileResponse:
    """Return the caller's current account record (re-read from the store)."""
    return ProfileResponse(kind=principal.kind.value, user=account_response(principal.account))
