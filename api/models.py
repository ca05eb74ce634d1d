"""
API request and response models for confreg REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
registry/models.py, which own the internal domain representation. Route
handlers map between the two.

No response model carries a password hash.
"""

from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import Admin, User
from core.models import ORGANIZATION_ROLES, AttendeeStatus, OrganizationType, Role
from registry.models import Attendee, Organization

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
_Email = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255, pattern=EMAIL_PATTERN)]
_OptionalText = Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    errors lists per-field or per-rule problems for validation failures.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    errors: Optional[list[dict[str, Any]]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    The password is not stripped: surrounding whitespace is part of it.
    """

    organization_short_code: _Required
    username: _Required
    password: str = Field(min_length=1, max_length=255)


class AdminLoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/admin/login."""

    username: _Required
    password: str = Field(min_length=1, max_length=255)


class ChangePasswordRequest(BaseModel):
    """Request body for POST /api/v1/auth/change-password.

    The new-password policy is checked by the handler, not here, so that a
    confirmation mismatch can be reported ahead of policy failures.
    """

    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1, max_length=255)
    new_password: str = Field(alias="newPassword", max_length=255)
    confirm_password: str = Field(alias="confirmPassword", min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Accounts -- responses
# ---------------------------------------------------------------------------


class AdminResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    fullname: str
    email: str
    username: str
    role: str
    profile_image: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_admin(cls, admin: Admin) -> "AdminResponse":
        return cls(
            id=admin.id,
            fullname=admin.fullname,
            email=admin.email,
            username=admin.username,
            role=admin.role,
            profile_image=admin.profile_image,
            created_at=admin.created_at or "",
            updated_at=admin.updated_at or "",
        )


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    organization: str
    organization_short_code: str
    contact_person: str
    contact_person_email: str
    username: str
    role: str
    profile_image: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            organization=user.organization,
            organization_short_code=user.organization_short_code,
            contact_person=user.contact_person,
            contact_person_email=user.contact_person_email,
            username=user.username,
            role=user.role,
            profile_image=user.profile_image,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


def account_response(account: Union[Admin, User]) -> Union[AdminResponse, UserResponse]:
    """Project either account kind onto its response model."""
    if isinstance(account, Admin):
        return AdminResponse.from_admin(account)
    return UserResponse.from_user(account)


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: Union[UserResponse, AdminResponse]


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    user: Union[UserResponse, AdminResponse]


# ---------------------------------------------------------------------------
# Organization users (admin-managed)
# ---------------------------------------------------------------------------


def _check_organization_role(value: Optional[Role]) -> Optional[Role]:
    if value is not None and value not in ORGANIZATION_ROLES:
        allowed = ", ".join(r.value for r in ORGANIZATION_ROLES)
        raise ValueError(f"role must be one of: {allowed}")
    return value


class UserCreate(BaseModel):
    """Request body for POST /api/v1/admin/users."""

    organization: _Required
    organization_short_code: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
    contact_person: _Required
    contact_person_email: _Email
    username: _Required
    password: str = Field(min_length=6, max_length=255)
    role: Role = Role.ministry
    profile_image: _OptionalText = None

    @field_validator("role")
    @classmethod
    def role_is_organization_role(cls, value: Optional[Role]) -> Optional[Role]:
        return _check_organization_role(value)


class UserPatch(BaseModel):
    """Request body for PATCH /api/v1/admin/users/{user_id}. All fields optional."""

    organization: Optional[_Required] = None
    contact_person: Optional[_Required] = None
    contact_person_email: Optional[_Email] = None
    profile_image: _OptionalText = None
    role: Optional[Role] = None

    @field_validator("role")
    @classmethod
    def role_is_organization_role(cls, value: Optional[Role]) -> Optional[Role]:
        return _check_organization_role(value)


# ---------------------------------------------------------------------------
# Attendees
# ---------------------------------------------------------------------------


class AttendeeCreate(BaseModel):
    """Request body for POST .../attendees. status must be a known AttendeeStatus."""

    fullname: _Required
    phone_number: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)]
    email: _Email
    nin: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=30)]] = None
    position: _Required
    grade: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
    organization: _Required
    department: _Required
    department_agency: _Required
    staff_id: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]] = None
    office_location: _OptionalText = None
    remark: Optional[str] = Field(default=None, max_length=1000)
    status: AttendeeStatus


class AttendeeStatusUpdate(BaseModel):
    status: AttendeeStatus


class CreatorInfo(BaseModel):
    """The resolved account that registered an attendee."""

    model_config = ConfigDict(frozen=True)

    kind: str  # "ADMIN" | "USER"
    id: int
    username: str
    display_name: str
    email: str
    role: str


class AttendeeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    fullname: str
    email: str
    phone_number: str
    nin: Optional[str]
    nin_verified: bool
    position: str
    grade: str
    organization: str
    department: str
    department_agency: str
    staff_id: Optional[str]
    office_location: Optional[str]
    remark: Optional[str]
    status: str
    role: str
    registered_at: str
    created_at: str
    updated_at: str
    created_by: Optional[CreatorInfo] = None

    @classmethod
    def from_attendee(cls, attendee: Attendee, creator: Optional[CreatorInfo]) -> "AttendeeResponse":
        return cls(
            id=attendee.id,
            fullname=attendee.fullname,
            email=attendee.email,
            phone_number=attendee.phone_number,
            nin=attendee.nin,
            nin_verified=attendee.nin_verified,
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
            registered_at=attendee.registered_at,
            created_at=attendee.created_at,
            updated_at=attendee.updated_at,
            created_by=creator,
        )


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


class OrganizationCreate(BaseModel):
    name: _Required
    abbreviation: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]] = None
    type: OrganizationType
    parent_id: Optional[int] = Field(default=None, ge=1)


class OrganizationPatch(BaseModel):
    """Request body for PATCH /api/v1/admin/organizations/{org_id}.

    Only fields present in the body are applied. An explicit
    "parent_id": null detaches the organization from its parent.
    """

    name: Optional[_Required] = None
    abbreviation: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]] = None
    type: Optional[OrganizationType] = None
    parent_id: Optional[int] = Field(default=None, ge=1)


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    abbreviation: Optional[str]
    type: str
    parent_id: Optional[int]
    created_at: str
    updated_at: str

    @classmethod
    def from_organization(cls, org: Organization) -> "OrganizationResponse":
        return cls(
            id=org.id,
            name=org.name,
            abbreviation=org.abbreviation,
            type=org.type,
            parent_id=org.parent_id,
            created_at=org.created_at,
            updated_at=org.updated_at,
        )
