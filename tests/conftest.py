"""
tests/conftest.py -- Shared test fixtures for confreg integration tests.

This module provides:
  - make_stores(): isolated in-memory DBs for the account and registry stores
  - RecordingNotifier: a notifier that records (or fails) welcome messages
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api: module-scoped ApiEnv with a TestClient, the stores, a super admin
         and a ministry user, each with a bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any application import:
  DEBUG=true          -- get_settings() auto-generates SECRET_KEY
  ALLOWED_HOSTS       -- TrustedHostMiddleware must accept "testserver"
  LOGIN_RATE_LIMIT    -- high enough that the login tests never trip it
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Admin, User
from auth.passwords import hash_password
from auth.store import AccountStore
from auth.tokens import account_claims, create_access_token
from core.models import AccountKind
from notify.sender import Notifier
from registry.store import RegistryStore

ADMIN_PASSWORD = "Adm1n!Passw0rd"
USER_PASSWORD = "Us3r!Passw0rd"


# ---------------------------------------------------------------------------
# Store and notifier helpers
# ---------------------------------------------------------------------------


def make_stores(db_suffix: str) -> tuple[AccountStore, RegistryStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB names so test modules
                   don't share state.
    """
    accounts_url = f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true"
    registry_url = f"sqlite:///file:test_registry_{db_suffix}?mode=memory&cache=shared&uri=true"
    return AccountStore(db_url=accounts_url), RegistryStore(db_url=registry_url)


class RecordingNotifier(Notifier):
    """Records every welcome message. With fail=True, raises instead."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def send_welcome(self, recipient: str, display_name: str, temporary_password: str) -> None:
        if self.fail:
            raise RuntimeError("mail relay unavailable")
        self.sent.append((recipient, display_name, temporary_password))


def _patch_lifespan(accounts: AccountStore, registry: RegistryStore, notifier: Notifier):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = accounts
        app.state.registry = registry
        app.state.notifier = notifier
        yield

    return test_lifespan


def token_for(kind: AccountKind, account: Admin | User) -> str:
    return create_access_token(account_claims(kind, account))


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Module-scoped environment -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiEnv:
    client: TestClient
    accounts: AccountStore
    registry: RegistryStore
    notifier: RecordingNotifier
    admin: Admin
    admin_token: str
    user: User
    user_token: str

    @property
    def admin_headers(self) -> dict[str, str]:
        return bearer(self.admin_token)

    @property
    def user_headers(self) -> dict[str, str]:
        return bearer(self.user_token)


@pytest.fixture(scope="module")
def api(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv for API integration tests.

    Seeds one super admin (username "root") and one ministry user
    (short code "MOW", username "works") before the client starts, and
    issues a bearer token for each.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    accounts, registry = make_stores(suffix)
    notifier = RecordingNotifier()

    admin_id = accounts.create_admin(
        Admin(
            fullname="Root Admin",
            email="root@confreg.test",
            username="root",
            hashed_password=hash_password(ADMIN_PASSWORD),
        )
    )
    user_id = accounts.create_user(
        User(
            organization="Ministry of Works",
            organization_short_code="MOW",
            contact_person="Ngozi Eze",
            contact_person_email="ngozi@works.test",
            username="works",
            hashed_password=hash_password(USER_PASSWORD),
        )
    )
    admin = accounts.get_admin(admin_id)
    user = accounts.get_user(user_id)

    app.router.lifespan_context = _patch_lifespan(accounts, registry, notifier)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiEnv(
            client=client,
            accounts=accounts,
            registry=registry,
            notifier=notifier,
            admin=admin,
            admin_token=token_for(AccountKind.admin, admin),
            user=user,
            user_token=token_for(AccountKind.user, user),
        )

    accounts.close()
    registry.close()


@pytest.fixture(autouse=True)
def _clear_cookies(request):
    """Drop the access_token cookie a login test may have left on the shared client."""
    yield
    if "api" in request.fixturenames:
        request.getfixturevalue("api").client.cookies.clear()
