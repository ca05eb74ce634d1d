"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in registry/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/, registry/, or notify/.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.models import AccountKind


@dataclass
class Admin:
    """A back-office administrator. Logs in with username + password.

    hashed_password is None only for corrupt or legacy rows; the login flow
    treats that as a data-integrity error, never as "no password required".
    """

    fullname: str
    email: str
    username: str
    role: str = "super_admin"
    id: int | None = None
    hashed_password: str | None = None
    profile_image: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def display_name(self) -> str:
        return self.fullname


@dataclass
class User:
    """An organization-user account (ministry, agency, ...).

    The login handle is scoped by organization: (organization_short_code,
    username) is the compound key the login flow looks up.
    """

    organization: str
    organization_short_code: str
    contact_person: str
    contact_person_email: str
    username: str
    role: str = "ministry"
    id: int | None = None
    hashed_password: str | None = None
    profile_image: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def display_name(self) -> str:
        return self.contact_person

    @property
    def email(self) -> str:
        return self.contact_person_email


@dataclass
class Principal:
    """The authenticated identity behind a request.

    role is re-read from the store on every request, never taken from the
    token, so a role change applies to the very next call.
    """

    kind: AccountKind
    id: int
    role: str
    account: Admin | User
