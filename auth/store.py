"""
auth/store.py -- SQLAlchemy Core persistence layer for account entities.

Pattern: Repository + Data Mapper (same as registry/store.py).
AccountStore is the repository; _row_to_admin / _row_to_user are the mappers.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Ids:
  Both tables use SQLite AUTOINCREMENT, so an id freed by a delete is never
  handed to a new account. Tokens carry only the id.

Uniqueness:
  admins.email, admins.username, users.contact_person_email and the
  (organization_short_code, username) login key are UNIQUE in the schema.
  Inserts and updates rely on those constraints and let IntegrityError
  propagate; there is no read-before-insert pre-check to race against.

Layer rule: no imports from api/, registry/, or notify/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, UniqueConstraint, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import Admin, User
from core.config import get_settings
from core.models import AccountKind

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("fullname", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("role", String(30), nullable=False, server_default="super_admin"),
    Column("profile_image", Text),
    Column("hashed_password", Text),  # NULL only in legacy/corrupt rows
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("organization", String(255), nullable=False),
    Column("organization_short_code", String(50), nullable=False),
    Column("contact_person", String(255), nullable=False),
    Column("contact_person_email", String(255), nullable=False, unique=True),
    Column("username", String(255), nullable=False),
    Column("profile_image", Text),
    Column("role", String(30), nullable=False, server_default="ministry"),
    Column("hashed_password", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    UniqueConstraint("organization_short_code", "username", name="uq_user_login"),
    sqlite_autoincrement=True,
)

# Columns a caller may change through update_user(). Anything else is rejected.
_USER_MUTABLE_FIELDS = frozenset(
    {"organization", "contact_person", "contact_person_email", "profile_image", "role"}
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block on writers.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Admin and User accounts.

    Usage:
        store = AccountStore()
        store.create_admin(Admin(fullname="Ada", email="ada@example.org", username="ada",
                                 hashed_password=hash_password("S3cret!pass")))
        admin = store.get_admin_by_username("ada")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Admins
    # ------------------------------------------------------------------

    def has_admins(self) -> bool:
        """Return True if at least one admin record exists. Used by the CLI bootstrap."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_admins)).scalar()
        return (result or 0) > 0

    def create_admin(self, admin: Admin) -> int:
        """Insert a new admin and return its ID.

        Raises sqlalchemy.exc.IntegrityError on a duplicate email or username.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _admins.insert().values(
                    fullname=admin.fullname,
                    email=admin.email,
                    username=admin.username,
                    role=admin.role,
                    profile_image=admin.profile_image,
                    hashed_password=admin.hashed_password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_admin(self, admin_id: int) -> Admin | None:
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_admin_by_username(self, username: str) -> Admin | None:
        """Look up an admin by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.username == username)).fetchone()
        return _row_to_admin(row) if row is not None else None

    # ------------------------------------------------------------------
    # Organization users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new organization user and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the contact email or the
        (organization_short_code, username) pair is already taken.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    organization=user.organization,
                    organization_short_code=user.organization_short_code,
                    contact_person=user.contact_person,
                    contact_person_email=user.contact_person_email,
                    username=user.username,
                    profile_image=user.profile_image,
                    role=user.role,
                    hashed_password=user.hashed_password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_user(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_by_login(self, organization_short_code: str, username: str) -> User | None:
        """Look up a user by the (organization_short_code, username) login key."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where(
                    (_users.c.organization_short_code == organization_short_code) & (_users.c.username == username)
                )
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all organization users, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at.desc(), _users.c.id.desc())).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable profile fields on an existing user.

        Accepted fields: organization, contact_person, contact_person_email,
        profile_image, role. Unknown keys raise ValueError.

        Returns True if a row was updated, False if user_id was not found.
        Raises IntegrityError if the new contact email is already taken.
        """
        unknown = set(fields) - _USER_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(**fields, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user. Returns True if deleted, False if not found.

        Attendees this user created keep their creator reference; it resolves
        to None from then on.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Either kind
    # ------------------------------------------------------------------

    def get_account(self, kind: AccountKind, account_id: int) -> Admin | User | None:
        """Fetch an account from the collection named by kind."""
        if kind is AccountKind.admin:
            return self.get_admin(account_id)
        if kind is AccountKind.user:
            return self.get_user(account_id)
        return None

    def update_password(self, kind: AccountKind, account_id: int, hashed_password: str) -> bool:
        """Replace the stored hash. Previously issued tokens are NOT invalidated."""
        table = _admins if kind is AccountKind.admin else _users
        with self.engine.connect() as conn:
            result = conn.execute(
                table.update()
                .where(table.c.id == account_id)
                .values(hashed_password=hashed_password, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row.id,
        fullname=row.fullname,
        email=row.email,
        username=row.username,
        role=row.role,
        profile_image=row.profile_image,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        organization=row.organization,
        organization_short_code=row.organization_short_code,
        contact_person=row.contact_person,
        contact_person_email=row.contact_person_email,
        username=row.username,
        profile_image=row.profile_image,
        role=row.role,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
