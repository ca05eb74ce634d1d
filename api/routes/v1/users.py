"""
api/routes/v1/users.py -- Organization-user management for super admins.

Routes:
  POST   /admin/users            -- create an organization user
  GET    /admin/users            -- list users, newest first
  GET    /admin/users/{user_id}  -- user detail
  PATCH  /admin/users/{user_id}  -- update profile fields or role
  DELETE /admin/users/{user_id}  -- delete a user

Every route is gated by require_super_admin on the router. Uniqueness of the
contact email and of the (short code, username) login key is enforced by the
database: the insert either succeeds or raises IntegrityError, which is
reported as a 400 conflict.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError

from api.errors import conflict, http_error, not_found
from api.models import MessageResponse, UserCreate, UserPatch, UserResponse
from auth.dependencies import require_super_admin
from auth.models import Principal, User
from auth.passwords import hash_password
from auth.store import AccountStore
from notify.sender import send_welcome_safely

logger = logging.getLogger("confreg.api.users")

router = APIRouter(dependencies=[Depends(require_super_admin)])


def _get_or_404(store: AccountStore, user_id: int) -> User:
    user = store.get_user(user_id)
    if user is None:
        raise not_found("User")
    return user


@router.post("/admin/users", response_model=UserResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    admin: Principal = Depends(require_super_admin),
) -> UserResponse:
    """Create an organization user and send the welcome notification.

    The chosen password goes to the notifier; only its hash is stored.
    """
    store: AccountStore = request.app.state.account_store
    user = User(
        organization=body.organization,
        organization_short_code=body.organization_short_code,
        contact_person=body.contact_person,
        contact_person_email=body.contact_person_email,
        username=body.username,
        role=body.role.value,
        profile_image=body.profile_image,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = store.create_user(user)
    except IntegrityError:
        raise conflict("A user with this email or login already exists.")

    logger.info("Admin %s created user %s (org=%s)", admin.id, user_id, user.organization_short_code)
    send_welcome_safely(
        request.app.state.notifier,
        user.contact_person_email,
        user.contact_person,
        body.password,
    )
    return UserResponse.from_user(_get_or_404(store, user_id))


@router.get("/admin/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    store: AccountStore = request.app.state.account_store
    return [UserResponse.from_user(u) for u in store.list_users()]


@router.get("/admin/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int) -> UserResponse:
    store: AccountStore = request.app.state.account_store
    return UserResponse.from_user(_get_or_404(store, user_id))


@router.patch("/admin/users/{user_id}", response_model=UserResponse)
def update_user(request: Request, user_id: int, body: UserPatch) -> UserResponse:
    """Apply the fields present in the body. An empty body is a 400."""
    store: AccountStore = request.app.state.account_store
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise http_error(400, "no_changes", "No updatable fields were provided.")
    if "role" in fields:
        fields["role"] = fields["role"].value

    try:
        updated = store.update_user(user_id, **fields)
    except IntegrityError:
        raise conflict("A user with this email already exists.")
    if not updated:
        raise not_found("User")
    return UserResponse.from_user(_get_or_404(store, user_id))


@router.delete("/admin/users/{user_id}", response_model=MessageResponse)
def delete_user(
    request: Request,
    user_id: int,
    admin: Principal = Depends(require_super_admin),
) -> MessageResponse:
    """Delete a user. Attendees it registered keep a creator reference that now resolves to null."""
    store: AccountStore = request.app.state.account_store
    if not store.delete_user(user_id):
        raise not_found("User")
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return MessageResponse(message="User deleted successfully.")
