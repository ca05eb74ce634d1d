"""
registry/models.py -- Domain dataclasses for organizations and attendees.

These are pure data containers with zero logic. Persistence lives in
registry/store.py; creator resolution lives in registry/creators.py.
"""

from dataclasses import dataclass
from typing import Optional

from core.models import CreatorKind


@dataclass(frozen=True)
class CreatorRef:
    """Polymorphic reference to whoever registered an attendee.

    A tagged union: kind selects the collection (admins or users), id is the
    row id inside it. Stored as two plain columns, never as a foreign key,
    so the referenced account can disappear; resolution then yields None.
    """

    kind: CreatorKind
    id: int


@dataclass
class Organization:
    """A ministry, agency or parastatal, optionally nested under a parent.

    parent_id is a plain integer. The organization routes refuse a parent that would make an
    organization its own ancestor.
    """

    name: str
    type: str  # "MINISTRY" | "AGENCY" | "PARASTATAL" | "OTHER"
    id: Optional[int] = None
    abbreviation: Optional[str] = None
    parent_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Attendee:
    """A conference registration record.

    hashed_password holds the argon2 hash of the temporary password generated
    at registration. created_by is None when the stored tag is missing or not
    a known CreatorKind.
    """

    fullname: str
    email: str
    phone_number: str
    position: str
    grade: str
    organization: str
    department: str
    department_agency: str
    status: str = "Pending"  # "Pending" | "Approved" | "Rejected"
    role: str = "attendee"
    nin: Optional[str] = None
    nin_verified: bool = False
    staff_id: Optional[str] = None
    office_location: Optional[str] = None
    remark: Optional[str] = None
    hashed_password: Optional[str] = None
    created_by: Optional[CreatorRef] = None
    id: Optional[int] = None
    registered_at: str = ""
    created_at: str = ""
    updated_at: str = ""
