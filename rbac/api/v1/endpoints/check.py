"""Permission check API: decisions and effective permission/role sets.

Any authenticated caller may ask about any subject; the answers are
decisions, never data.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from rbac.api.v1.dependencies import get_authorization_service, get_current_subject_id
from rbac.application.services.authorization_service import AuthorizationService
from rbac.core.limiter import limit_checks
from rbac.schemas.check import (
    AnyPermissionCheckRequest,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionsResponse,
    RolesResponse,
)

router = APIRouter()


@router.post("", response_model=PermissionCheckResponse)
@limit_checks
async def check_permission(
    request: Request,
    body: PermissionCheckRequest,
    _: Annotated[str, Depends(get_current_subject_id)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
):
    """Decide whether subject_id holds permission (optionally on one resource instance)."""
    result = await auth_svc.check_permission(
        body.subject_id, body.permission, body.resource_instance_id
    )
    return PermissionCheckResponse(allowed=result.allowed, reason=result.reason)


@router.post("/any", response_model=PermissionCheckResponse)
@limit_checks
async def check_any_permission(
    request: Request,
    body: AnyPermissionCheckRequest,
    _: Annotated[str, Depends(get_current_subject_id)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
):
    """Allow when subject_id holds at least one of permissions."""
    result = await auth_svc.check_any_permission(
        body.subject_id, body.permissions, body.resource_instance_id
    )
    return PermissionCheckResponse(allowed=result.allowed, reason=result.reason)


@router.get("/permissions/{subject_id}", response_model=PermissionsResponse)
@limit_checks
async def get_permissions(
    request: Request,
    subject_id: str,
    _: Annotated[str, Depends(get_current_subject_id)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
):
    permissions = await auth_svc.get_permissions(subject_id, application_code)
    return PermissionsResponse(subject_id=subject_id, permissions=sorted(permissions))


@router.get("/roles/{subject_id}", response_model=RolesResponse)
@limit_checks
async def get_roles(
    request: Request,
    subject_id: str,
    _: Annotated[str, Depends(get_current_subject_id)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
):
    roles = await auth_svc.get_roles(subject_id, application_code)
    return RolesResponse(subject_id=subject_id, roles=sorted(roles))
