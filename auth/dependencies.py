"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and roles.

Token sources, checked in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. JWT cookie ("access_token") -- set by the login routes for browsers.

try_get_principal() is the soft variant (returns None on failure).
get_current_principal() wraps it and raises HTTP 403 "unauthenticated".
require_role() builds the per-route authorization gate: it resolves the
principal once and raises HTTP 403 "unauthorized" on a kind or role mismatch.

The gate re-reads the account from the store on every request and checks the
stored role, not the role claim inside the token. A role change therefore
applies to the very next request; a deleted account stops authenticating.

Declare the same gate object on the router and in handler signatures:
FastAPI caches a dependency's result per request, so it runs once.

Layer rule: no imports from api/, registry/, or notify/.
  auth/dependencies.py may import from fastapi because it is part of the
  FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import HTTPException, Request

from auth.models import Principal
from auth.store import AccountStore
from auth.tokens import decode_access_token
from core.models import AccountKind, Role

logger = logging.getLogger("confreg.auth")


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get("access_token") or None


def try_get_principal(request: Request) -> Principal | None:
    """Authenticate the request via cookie or Bearer token.

    Returns the Principal on success, None on any failure. Never raises.
    """
    token = _extract_token(request)
    if token is None:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        kind = AccountKind(payload["kind"])
        account_id = int(payload["id"])
    except (TypeError, ValueError):
        return None

    store: AccountStore = request.app.state.account_store
    account = store.get_account(kind, account_id)
    if account is None:
        return None
    return Principal(kind=kind, id=account_id, role=account.role, account=account)


def get_current_principal(request: Request) -> Principal:
    """Require authentication. Raises HTTP 403 if the request carries no valid token."""
    principal = try_get_principal(request)
    if principal is None:
        raise HTTPException(
            status_code=403,
            detail={"code": "unauthenticated", "message": "Authentication required."},
        )
    return principal


def require_role(kind: AccountKind, *roles: Role) -> Callable[[Request], Principal]:
    """Build a dependency admitting only principals of kind holding one of roles.

    Every non-matching principal gets the same 403 "unauthorized" response,
    whatever role it actually holds.
    """
    allowed = frozenset(role.value for role in roles)

    def dependency(request: Request) -> Principal:
        principal = get_current_principal(request)
        if principal.kind is not kind or principal.role not in allowed:
            logger.info(
                "Denied %s %s to %s:%s (role=%s)",
                request.method,
                request.url.path,
                principal.kind.value,
                principal.id,
                principal.role,
            )
            raise HTTPException(
                status_code=403,
                detail={"code": "unauthorized", "message": "Unauthorized user."},
            )
        return principal

    dependency.__name__ = f"require_{kind.value}_{'_'.join(sorted(allowed))}"
    return dependency


require_super_admin = require_role(AccountKind.admin, Role.super_admin)
require_ministry = require_role(AccountKind.user, Role.ministry)
