"""Resource instance API: per-instance permission grants and ownership."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from rbac.api.v1.dependencies import (
    get_assignment_service,
    require_any_permission,
    require_permission,
)
from rbac.api.v1.outcomes import raise_for_outcome
from rbac.application.services.assignment_service import AssignmentService
from rbac.core.limiter import limit_writes
from rbac.schemas.assignment import (
    InstancePermissionRequest,
    MutationResponse,
    ResourceOwnerRequest,
)

router = APIRouter()


@router.post(
    "/{resource_type}/{resource_id}/permissions",
    response_model=MutationResponse,
    status_code=201,
)
@limit_writes
async def grant_instance_permission(
    request: Request,
    resource_type: str,
    resource_id: str,
    body: InstancePermissionRequest,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    caller_id: Annotated[
        str, Depends(require_any_permission("assignment:write", "instance_permission:grant"))
    ],
):
    """Grant one action on one resource instance; unknown instances are registered."""
    result = await assignment_svc.grant_instance_permission(
        body.subject_id,
        resource_type,
        resource_id,
        body.action,
        application_code=body.application_code,
        expires_at=body.expires_at,
        granted_by=caller_id,
    )
    return raise_for_outcome(result)


@router.delete("/{resource_type}/{resource_id}/permissions", response_model=MutationResponse)
@limit_writes
async def revoke_instance_permission(
    request: Request,
    resource_type: str,
    resource_id: str,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[
        str, Depends(require_any_permission("assignment:write", "instance_permission:grant"))
    ],
    subject_id: Annotated[str, Query(min_length=1)],
    action: Annotated[str, Query(min_length=1, max_length=64)],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
):
    result = await assignment_svc.revoke_instance_permission(
        subject_id,
        resource_type,
        resource_id,
        action,
        application_code=application_code,
    )
    return raise_for_outcome(result)


@router.put("/{resource_type}/{resource_id}/owner", response_model=MutationResponse)
@limit_writes
async def set_resource_owner(
    request: Request,
    resource_type: str,
    resource_id: str,
    body: ResourceOwnerRequest,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[str, Depends(require_permission("resource:update"))],
):
    """Set or clear (owner_subject_id null) the owner of a resource instance."""
    result = await assignment_svc.set_resource_owner(
        resource_type,
        resource_id,
        body.owner_subject_id,
        application_code=body.application_code,
    )
    return raise_for_outcome(result)
