"""Roles API: create, re-parent, attach/detach permissions, delete.

Role graph changes affect every subject holding the role, so these routes
require the admin role rather than a single permission.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from rbac.api.v1.dependencies import get_role_service, require_role
from rbac.api.v1.outcomes import raise_for_outcome
from rbac.application.services.role_service import RoleService
from rbac.core.limiter import limit_writes
from rbac.schemas.assignment import MutationResponse
from rbac.schemas.role import RoleCreateRequest, RoleParentRequest, RolePermissionRequest

router = APIRouter()


@router.post("", response_model=MutationResponse, status_code=201)
@limit_writes
async def create_role(
    request: Request,
    body: RoleCreateRequest,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[str, Depends(require_role("admin"))],
):
    """Create a role. Optionally attach permissions by code and set a parent."""
    result = await role_svc.create_role(
        body.code,
        body.name,
        application_code=body.application_code,
        parent_role_code=body.parent_role_code,
        permission_codes=body.permission_codes,
        description=body.description,
        is_system=body.is_system,
    )
    return raise_for_outcome(result)


@router.put("/{code}/parent", response_model=MutationResponse)
@limit_writes
async def set_parent_role(
    request: Request,
    code: str,
    body: RoleParentRequest,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[str, Depends(require_role("admin"))],
):
    result = await role_svc.set_parent_role(
        code, body.parent_role_code, application_code=body.application_code
    )
    return raise_for_outcome(result)


@router.post("/{code}/permissions", response_model=MutationResponse, status_code=201)
@limit_writes
async def add_role_permission(
    request: Request,
    code: str,
    body: RolePermissionRequest,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[str, Depends(require_role("admin"))],
):
    result = await role_svc.add_permission(
        code, body.permission, application_code=body.application_code
    )
    return raise_for_outcome(result)


@router.delete("/{code}/permissions/{permission}", response_model=MutationResponse)
@limit_writes
async def remove_role_permission(
    request: Request,
    code: str,
    permission: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[str, Depends(require_role("admin"))],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
):
    result = await role_svc.remove_permission(code, permission, application_code=application_code)
    return raise_for_outcome(result)


@router.delete("/{code}", response_model=MutationResponse)
@limit_writes
async def delete_role(
    request: Request,
    code: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[str, Depends(require_role("admin"))],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
):
    """Delete a role and its assignments. System roles cannot be deleted."""
    result = await role_svc.delete_role(code, application_code=application_code)
    return raise_for_outcome(result)
