"""Subject assignment API: direct role assignments and activation."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from rbac.api.v1.dependencies import get_assignment_service, require_permission
from rbac.api.v1.outcomes import raise_for_outcome
from rbac.application.services.assignment_service import AssignmentService
from rbac.core.limiter import limit_writes
from rbac.schemas.assignment import MutationResponse, RoleAssignRequest, SubjectActiveRequest

router = APIRouter()


@router.post("/{external_id}/roles", response_model=MutationResponse, status_code=201)
@limit_writes
async def assign_role(
    request: Request,
    external_id: str,
    body: RoleAssignRequest,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    caller_id: Annotated[str, Depends(require_permission("assignment:write"))],
):
    """Assign a role to a subject, optionally scoped to one resource instance."""
    result = await assignment_svc.assign_role(
        external_id,
        body.role_code,
        application_code=body.application_code,
        resource_instance_id=body.resource_instance_id,
        expires_at=body.expires_at,
        granted_by=caller_id,
    )
    return raise_for_outcome(result)


@router.delete("/{external_id}/roles/{role_code}", response_model=MutationResponse)
@limit_writes
async def revoke_role(
    request: Request,
    external_id: str,
    role_code: str,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[str, Depends(require_permission("assignment:write"))],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
    resource_instance_id: Annotated[str | None, Query(max_length=255)] = None,
):
    result = await assignment_svc.revoke_role(
        external_id,
        role_code,
        application_code=application_code,
        resource_instance_id=resource_instance_id,
    )
    return raise_for_outcome(result)


@router.put("/{external_id}/active", response_model=MutationResponse)
@limit_writes
async def set_subject_active(
    request: Request,
    external_id: str,
    body: SubjectActiveRequest,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[str, Depends(require_permission("subject:update"))],
):
    """Activate or deactivate a subject. Inactive subjects are denied everything."""
    result = await assignment_svc.set_subject_active(external_id, body.is_active)
    return raise_for_outcome(result)
