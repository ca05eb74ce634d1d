"""
registry/store.py -- SQLAlchemy-backed persistence for organizations and attendees.

Uses SQLAlchemy Core (not ORM) so the dataclasses in registry/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. RegistryStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Uniqueness: attendees.email and organizations.abbreviation are UNIQUE in the
schema. Inserts let IntegrityError propagate and the route layer reports it
as a conflict.

Usage:
    store = RegistryStore("sqlite:///:memory:")
    org_id = store.create_organization(Organization(name="Ministry of Works", type="MINISTRY"))
    attendee_id = store.create_attendee(attendee)
    store.update_attendee_status(attendee_id, "Approved")
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from core.config import get_settings
from core.models import CreatorKind
from registry.models import Attendee, CreatorRef, Organization

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_organizations = Table(
    "organizations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("abbreviation", String(50), unique=True),  # NULLs never collide
    Column("type", String(20), nullable=False, server_default="OTHER"),
    Column("parent_id", Integer),  # self-reference, checked in code
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

_attendees = Table(
    "attendees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("fullname", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone_number", String(30), nullable=False),
    Column("nin", String(30)),
    Column("nin_verified", Integer, nullable=False, server_default="0"),
    Column("position", String(255), nullable=False),
    Column("grade", String(50), nullable=False),
    Column("organization", String(255), nullable=False),
    Column("department", String(255), nullable=False),
    Column("department_agency", String(255), nullable=False),
    Column("staff_id", String(50)),
    Column("office_location", String(255)),
    Column("remark", Text),
    Column("status", String(10), nullable=False, server_default="Pending"),
    Column("role", String(30), nullable=False, server_default="attendee"),
    Column("hashed_password", Text),
    # Polymorphic creator: type tag + id, deliberately not a foreign key.
    Column("created_by_type", String(10)),
    Column("created_by_id", Integer),
    Column("registered_at", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

_ORGANIZATION_MUTABLE_FIELDS = frozenset({"name", "abbreviation", "type", "parent_id"})


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RegistryStore:
    """Repository for Organization and Attendee entities."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    def create_organization(self, org: Organization) -> int:
        """Insert an organization and return its ID.

        Raises IntegrityError on a duplicate abbreviation. The caller checks
        that parent_id exists.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _organizations.insert().values(
                    name=org.name,
                    abbreviation=org.abbreviation,
                    type=org.type,
                    parent_id=org.parent_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_organization(self, org_id: int) -> Optional[Organization]:
        with self.engine.connect() as conn:
            row = conn.execute(_organizations.select().where(_organizations.c.id == org_id)).fetchone()
        return _row_to_organization(row) if row is not None else None

    def list_organizations(self, parent_id: Optional[int] = None) -> list[Organization]:
        """Return organizations ordered by name, optionally only the children of parent_id."""
        query = _organizations.select()
        if parent_id is not None:
            query = query.where(_organizations.c.parent_id == parent_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_organizations.c.name, _organizations.c.id)).fetchall()
        return [_row_to_organization(r) for r in rows]

    def ancestor_ids(self, org_id: int) -> list[int]:
        """Return the parent chain of org_id, nearest first.

        Stops at the first repeated id so a cycle already present in the data
        cannot loop forever.
        """
        chain: list[int] = []
        seen = {org_id}
        current = self.get_organization(org_id)
        while current is not None and current.parent_id is not None and current.parent_id not in seen:
            chain.append(current.parent_id)
            seen.add(current.parent_id)
            current = self.get_organization(current.parent_id)
        return chain

    def would_create_cycle(self, org_id: int, new_parent_id: int) -> bool:
        """True if making new_parent_id the parent of org_id closes a loop."""
        if new_parent_id == org_id:
            return True
        return org_id in self.ancestor_ids(new_parent_id)

    def update_organization(self, org_id: int, **fields) -> bool:
        """Update name, abbreviation, type or parent_id.

        Returns False if org_id was not found. Raises ValueError on unknown
        keys and IntegrityError on a duplicate abbreviation.
        """
        unknown = set(fields) - _ORGANIZATION_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown organization fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _organizations.update()
                .where(_organizations.c.id == org_id)
                .values(**fields, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_organization(self, org_id: int) -> bool:
        """Delete an organization; its direct children become top-level.

        Both statements run in one transaction. Returns False if not found.
        """
        with self.engine.begin() as conn:
            result = conn.execute(_organizations.delete().where(_organizations.c.id == org_id))
            if result.rowcount == 0:
                return False
            conn.execute(
                _organizations.update()
                .where(_organizations.c.parent_id == org_id)
                .values(parent_id=None, updated_at=_now_iso())
            )
        return True

    # ------------------------------------------------------------------
    # Attendees
    # ------------------------------------------------------------------

    def create_attendee(self, attendee: Attendee) -> int:
        """Insert an attendee and return its ID. Raises IntegrityError on a duplicate email."""
        now = _now_iso()
        creator = attendee.created_by
        with self.engine.connect() as conn:
            result = conn.execute(
                _attendees.insert().values(
                    fullname=attendee.fullname,
                    email=attendee.email,
                    phone_number=attendee.phone_number,
                    nin=attendee.nin,
                    nin_verified=1 if attendee.nin_verified else 0,
                    position=attendee.position,
                    grade=attendee.grade,
                    organization=attendee.organization,
                    department=attendee.department,
                    department_agency=attendee.department_agency,
                    staff_id=attendee.staff_id,
                    office_location=attendee.office_location,
                    remark=attendee.remark,
                    status=attendee.status,
                    role=attendee.role,
                    hashed_password=attendee.hashed_password,
                    created_by_type=creator.kind.value if creator else None,
                    created_by_id=creator.id if creator else None,
                    registered_at=attendee.registered_at or now,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_attendee(self, attendee_id: int) -> Optional[Attendee]:
        with self.engine.connect() as conn:
            row = conn.execute(_attendees.select().where(_attendees.c.id == attendee_id)).fetchone()
        return _row_to_attendee(row) if row is not None else None

    def list_attendees(self, created_by: Optional[CreatorRef] = None) -> list[Attendee]:
        """Return attendees newest first, optionally only those registered by created_by."""
        query = _attendees.select()
        if created_by is not None:
            query = query.where(
                (_attendees.c.created_by_type == created_by.kind.value)
                & (_attendees.c.created_by_id == created_by.id)
            )
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_attendees.c.created_at.desc(), _attendees.c.id.desc())).fetchall()
        return [_row_to_attendee(r) for r in rows]

    def update_attendee_status(self, attendee_id: int, status: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _attendees.update()
                .where(_attendees.c.id == attendee_id)
                .values(status=status, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_attendee(self, attendee_id: int) -> bool:
        """Permanently delete an attendee. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_attendees.delete().where(_attendees.c.id == attendee_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_organization(row) -> Organization:
    return Organization(
        id=row.id,
        name=row.name,
        abbreviation=row.abbreviation,
        type=row.type,
        parent_id=row.parent_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_creator(created_by_type: Optional[str], created_by_id: Optional[int]) -> Optional[CreatorRef]:
    if not created_by_type or created_by_id is None:
        return None
    try:
        kind = CreatorKind(created_by_type)
    except ValueError:
        return None
    return CreatorRef(kind=kind, id=created_by_id)


def _row_to_attendee(row) -> Attendee:
    return Attendee(
        id=row.id,
        fullname=row.fullname,
        email=row.email,
        phone_number=row.phone_number,
        nin=row.nin,
        nin_verified=bool(row.nin_verified),
        position=row.position,
        grade=row.grade,
        organization=row.organization,
        department=row.department,
        department_agency=row.department_agency,
        staff_id=row.staff_id,
        office_location=row.office_location,
        remark=row.remark,
        status=row.status,
        role=row.role,
        hashed_password=row.hashed_password,
        created_by=_row_to_creator(row.created_by_type, row.created_by_id),
        registered_at=row.registered_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
