"""
api/routes/v1/organizations.py -- Organization hierarchy management (super admins).

Routes:
  POST   /admin/organizations            -- create
  GET    /admin/organizations            -- list by name; ?parent_id= for children only
  GET    /admin/organizations/{org_id}   -- detail
  PATCH  /admin/organizations/{org_id}   -- update present fields
  DELETE /admin/organizations/{org_id}   -- delete; children become top-level

Hierarchy rules:
  A parent_id must name an existing organization (404 otherwise).
  An organization may not become its own parent or the child of one of its
  descendants (422 invalid_parent), so the parent chain never loops.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError

from api.errors import conflict, http_error, not_found
from api.models import MessageResponse, OrganizationCreate, OrganizationPatch, OrganizationResponse
from auth.dependencies import require_super_admin
from registry.models import Organization
from registry.store import RegistryStore

logger = logging.getLogger("confreg.api.organizations")

router = APIRouter(dependencies=[Depends(require_super_admin)])


def _get_or_404(registry: RegistryStore, org_id: int) -> Organization:
    org = registry.get_organization(org_id)
    if org is None:
        raise not_found("Organization")
    return org


def _check_parent_exists(registry: RegistryStore, parent_id: Optional[int]) -> None:
    if parent_id is not None and registry.get_organization(parent_id) is None:
        raise not_found("Parent organization")


@router.post("/admin/organizations", response_model=OrganizationResponse, status_code=201)
def create_organization(request: Request, body: OrganizationCreate) -> OrganizationResponse:
    registry: RegistryStore = request.app.state.registry
    _check_parent_exists(registry, body.parent_id)
    org = Organization(
        name=body.name,
        abbreviation=body.abbreviation,
        type=body.type.value,
        parent_id=body.parent_id,
    )
    try:
        org_id = registry.create_organization(org)
    except IntegrityError:
        raise conflict("An organization with this abbreviation already exists.")
    logger.info("Created organization %s (%s)", org_id, org.name)
    return OrganizationResponse.from_organization(_get_or_404(registry, org_id))


@router.get("/admin/organizations", response_model=list[OrganizationResponse])
def list_organizations(request: Request, parent_id: Optional[int] = None) -> list[OrganizationResponse]:
    registry: RegistryStore = request.app.state.registry
    return [OrganizationResponse.from_organization(o) for o in registry.list_organizations(parent_id=parent_id)]


@router.get("/admin/organizations/{org_id}", response_model=OrganizationResponse)
def get_organization(request: Request, org_id: int) -> OrganizationResponse:
    registry: RegistryStore = request.app.state.registry
    return OrganizationResponse.from_organization(_get_or_404(registry, org_id))


@router.patch("/admin/organizations/{org_id}", response_model=OrganizationResponse)
def update_organization(request: Request, org_id: int, body: OrganizationPatch) -> OrganizationResponse:
    """Apply the fields present in the body.

    name, abbreviation and type are ignored when sent as null; parent_id
    null detaches the organization from its parent.
    """
    registry: RegistryStore = request.app.state.registry
    _get_or_404(registry, org_id)

    fields = {
        name: getattr(body, name)
        for name in ("name", "abbreviation", "type")
        if name in body.model_fields_set and getattr(body, name) is not None
    }
    if "type" in fields:
        fields["type"] = fields["type"].value
    if "parent_id" in body.model_fields_set:
        parent_id = body.parent_id
        if parent_id is not None:
            _check_parent_exists(registry, parent_id)
            if registry.would_create_cycle(org_id, parent_id):
                raise http_error(
                    422,
                    "invalid_parent",
                    "An organization cannot be its own parent or a child of its descendants.",
                )
        fields["parent_id"] = parent_id
    if not fields:
        raise http_error(400, "no_changes", "No updatable fields were provided.")

    try:
        updated = registry.update_organization(org_id, **fields)
    except IntegrityError:
        raise conflict("An organization with this abbreviation already exists.")
    if not updated:
        raise not_found("Organization")
    return OrganizationResponse.from_organization(_get_or_404(registry, org_id))


@router.delete("/admin/organizations/{org_id}", response_model=MessageResponse)
def delete_organization(request: Request, org_id: int) -> MessageResponse:
    registry: RegistryStore = request.app.state.registry
    if not registry.delete_organization(org_id):
        raise not_found("Organization")
    logger.info("Deleted organization %s", org_id)
    return MessageResponse(message="Organization deleted successfully.")
