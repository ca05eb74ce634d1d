"""
core/models.py -- Enumerations shared by every layer.

These are the closed value sets stored in the database and accepted over the
API. String-valued enums so a stored column compares equal to .value and
pydantic validates request bodies against membership directly.
"""

from enum import Enum


class Role(str, Enum):
    """Permission tag attached to every account and attendee record."""

    super_admin = "super_admin"
    attendee = "attendee"
    ministry = "ministry"
    agency = "agency"
    parastatal = "parastatal"
    exhibitor = "exhibitor"
    public_speaker = "public_speaker"
    other = "other"


# Roles an organization-user account may hold. super_admin belongs to the
# admins collection only; attendee belongs to attendee records only.
ORGANIZATION_ROLES: tuple[Role, ...] = (
    Role.ministry,
    Role.agency,
    Role.parastatal,
    Role.exhibitor,
    Role.public_speaker,
    Role.other,
)


class AccountKind(str, Enum):
    """Which collection an authenticated principal lives in.

    Carried in the token's "kind" claim so the verifier knows which table to
    re-read the account from.
    """

    admin = "admin"
    user = "user"


class OrganizationType(str, Enum):
    MINISTRY = "MINISTRY"
    AGENCY = "AGENCY"
    PARASTATAL = "PARASTATAL"
    OTHER = "OTHER"


class AttendeeStatus(str, Enum):
    Pending = "Pending"
    Approved = "Approved"
    Rejected = "Rejected"


class CreatorKind(str, Enum):
    """Type tag of an attendee's polymorphic creator reference."""

    admin = "ADMIN"
    user = "USER"
