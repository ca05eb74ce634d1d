"""
api/routes/v1/attendees.py -- Attendee registration routes.

Two routers share the helpers below:

  admin_router (super admins, every attendee):
    POST   /admin/attendees
    GET    /admin/attendees
    GET    /admin/attendees/{attendee_id}
    PATCH  /admin/attendees/{attendee_id}/status
    DELETE /admin/attendees/{attendee_id}

  organization_router (ministry users, only attendees they registered):
    POST   /organization/attendees
    GET    /organization/attendees
    GET    /organization/attendees/{attendee_id}
    DELETE /organization/attendees/{attendee_id}

An attendee registered by someone else is a 404 to a ministry user, the same
as an id that does not exist.

Creator resolution:
  Each attendee stores a CreatorRef (ADMIN or USER tag + id). Responses
  resolve it through registry.creators.resolve_creator() with one lookup per
  tag. A dangling or unreadable reference yields created_by = null.

Temporary password:
  Registration generates a 10-hex-character password, stores its argon2 hash
  and hands the plaintext to the notifier. Notification failure is logged and
  does not fail the request.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError

from api.errors import conflict, not_found
from api.models import AttendeeCreate, AttendeeResponse, AttendeeStatusUpdate, CreatorInfo, MessageResponse
from auth.dependencies import require_ministry, require_super_admin
from auth.models import Principal
from auth.passwords import hash_password
from auth.store import AccountStore
from core.models import CreatorKind
from notify.sender import send_welcome_safely
from registry.creators import resolve_creator
from registry.models import Attendee, CreatorRef
from registry.store import RegistryStore

logger = logging.getLogger("confreg.api.attendees")

admin_router = APIRouter(dependencies=[Depends(require_super_admin)])
organization_router = APIRouter(dependencies=[Depends(require_ministry)])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _creator_info(accounts: AccountStore, ref: Optional[CreatorRef]) -> Optional[CreatorInfo]:
    account = resolve_creator(
        ref,
        {
            CreatorKind.admin: accounts.get_admin,
            CreatorKind.user: accounts.get_user,
        },
    )
    if account is None:
        return None
    return CreatorInfo(
        kind=ref.kind.value,
        id=account.id,
        username=account.username,
        display_name=account.display_name,
        email=account.email,
        role=account.role,
    )


def _to_response(request: Request, attendee: Attendee) -> AttendeeResponse:
    accounts: AccountStore = request.app.state.account_store
    return AttendeeResponse.from_attendee(attendee, _creator_info(accounts, attendee.created_by))


def _register(request: Request, body: AttendeeCreate, creator: CreatorRef) -> AttendeeResponse:
    registry: RegistryStore = request.app.state.registry
    temporary_password = secrets.token_hex(5)
    attendee = Attendee(
        fullname=body.fullname,
        email=body.email,
        phone_number=body.phone_number,
        nin=body.nin,
        position=body.position,
        grade=body.grade,
        organization=body.organization,
        department=body.department,
        department_agency=body.department_agency,
        staff_id=body.staff_id,
        office_location=body.office_location,
        remark=body.remark,
        status=body.status.value,
        hashed_password=hash_password(temporary_password),
        created_by=creator,
    )
    try:
        attendee_id = registry.create_attendee(attendee)
    except IntegrityError:
        raise conflict("An attendee with this email already exists.")

    logger.info("%s %s registered attendee %s", creator.kind.value, creator.id, attendee_id)
    send_welcome_safely(request.app.state.notifier, attendee.email, attendee.fullname, temporary_password)
    return _to_response(request, _get_or_404(registry, attendee_id))


def _get_or_404(registry: RegistryStore, attendee_id: int) -> Attendee:
    attendee = registry.get_attendee(attendee_id)
    if attendee is None:
        raise not_found("Attendee")
    return attendee


def _owned_or_404(registry: RegistryStore, attendee_id: int, principal: Principal) -> Attendee:
    attendee = registry.get_attendee(attendee_id)
    if attendee is None or attendee.created_by != CreatorRef(CreatorKind.user, principal.id):
        raise not_found("Attendee")
    return attendee


# ---------------------------------------------------------------------------
# Super admin
# ---------------------------------------------------------------------------


@admin_router.post("/admin/attendees", response_model=AttendeeResponse, status_code=201)
def admin_create_attendee(
    request: Request,
    body: AttendeeCreate,
    admin: Principal = Depends(require_super_admin),
) -> AttendeeResponse:
    return _register(request, body, CreatorRef(CreatorKind.admin, admin.id))


@admin_router.get("/admin/attendees", response_model=list[AttendeeResponse])
def admin_list_attendees(request: Request) -> list[AttendeeResponse]:
    registry: RegistryStore = request.app.state.registry
    return [_to_response(request, a) for a in registry.list_attendees()]


@admin_router.get("/admin/attendees/{attendee_id}", response_model=AttendeeResponse)
def admin_get_attendee(request: Request, attendee_id: int) -> AttendeeResponse:
    registry: RegistryStore = request.app.state.registry
    return _to_response(request, _get_or_404(registry, attendee_id))


@admin_router.patch("/admin/attendees/{attendee_id}/status", response_model=AttendeeResponse)
def admin_update_attendee_status(
    request: Request,
    attendee_id: int,
    body: AttendeeStatusUpdate,
    admin: Principal = Depends(require_super_admin),
) -> AttendeeResponse:
    """Move an attendee to Pending, Approved or Rejected."""
    registry: RegistryStore = request.app.state.registry
    if not registry.update_attendee_status(attendee_id, body.status.value):
        raise not_found("Attendee")
    logger.info("Admin %s set attendee %s status to %s", admin.id, attendee_id, body.status.value)
    return _to_response(request, _get_or_404(registry, attendee_id))


@admin_router.delete("/admin/attendees/{attendee_id}", response_model=MessageResponse)
def admin_delete_attendee(request: Request, attendee_id: int) -> MessageResponse:
    registry: RegistryStore = request.app.state.registry
    if not registry.delete_attendee(attendee_id):
        raise not_found("Attendee")
    return MessageResponse(message="Attendee deleted successfully.")


# ---------------------------------------------------------------------------
# Ministry users
# ---------------------------------------------------------------------------


@organization_router.post("/organization/attendees", response_model=AttendeeResponse, status_code=201)
def organization_create_attendee(
    request: Request,
    body: AttendeeCreate,
    user: Principal = Depends(require_ministry),
) -> AttendeeResponse:
    return _register(request, body, CreatorRef(CreatorKind.user, user.id))


@organization_router.get("/organization/attendees", response_model=list[AttendeeResponse])
def organization_list_attendees(
    request: Request,
    user: Principal = Depends(require_ministry),
) -> list[AttendeeResponse]:
    registry: RegistryStore = request.app.state.registry
    own = registry.list_attendees(created_by=CreatorRef(CreatorKind.user, user.id))
    return [_to_response(request, a) for a in own]


@organization_router.get("/organization/attendees/{attendee_id}", response_model=AttendeeResponse)
def organization_get_attendee(
    request: Request,
    attendee_id: int,
    user: Principal = Depends(require_ministry),
) -> AttendeeResponse:
    registry: RegistryStore = request.app.state.registry
    return _to_response(request, _owned_or_404(registry, attendee_id, user))


@organization_router.delete("/organization/attendees/{attendee_id}", response_model=MessageResponse)
def organization_delete_attendee(
    request: Request,
    attendee_id: int,
    user: Principal = Depends(require_ministry),
) -> MessageResponse:
    registry: RegistryStore = request.app.state.registry
    _owned_or_404(registry, attendee_id, user)
    if not registry.delete_attendee(attendee_id):
        raise not_found("Attendee")
    return MessageResponse(message="Attendee deleted successfully.")
