"""Team API: team role assignments and membership."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from rbac.api.v1.dependencies import get_assignment_service, require_permission
from rbac.api.v1.outcomes import raise_for_outcome
from rbac.application.services.assignment_service import AssignmentService
from rbac.core.limiter import limit_writes
from rbac.schemas.assignment import MutationResponse, RoleAssignRequest, TeamMemberAddRequest

router = APIRouter()


@router.post("/{team_code}/roles", response_model=MutationResponse, status_code=201)
@limit_writes
async def assign_team_role(
    request: Request,
    team_code: str,
    body: RoleAssignRequest,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    caller_id: Annotated[str, Depends(require_permission("team:update"))],
):
    """Assign a role to a team; every member inherits it."""
    result = await assignment_svc.assign_team_role(
        team_code,
        body.role_code,
        application_code=body.application_code,
        resource_instance_id=body.resource_instance_id,
        expires_at=body.expires_at,
        granted_by=caller_id,
    )
    return raise_for_outcome(result)


@router.delete("/{team_code}/roles/{role_code}", response_model=MutationResponse)
@limit_writes
async def revoke_team_role(
    request: Request,
    team_code: str,
    role_code: str,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[str, Depends(require_permission("team:update"))],
    application_code: Annotated[str | None, Query(max_length=64)] = None,
    resource_instance_id: Annotated[str | None, Query(max_length=255)] = None,
):
    result = await assignment_svc.revoke_team_role(
        team_code,
        role_code,
        application_code=application_code,
        resource_instance_id=resource_instance_id,
    )
    return raise_for_outcome(result)


@router.post("/{team_code}/members/{external_id}", response_model=MutationResponse, status_code=201)
@limit_writes
async def add_team_member(
    request: Request,
    team_code: str,
    external_id: str,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[str, Depends(require_permission("team:update"))],
    body: TeamMemberAddRequest | None = None,
):
    membership_role = (body or TeamMemberAddRequest()).membership_role
    result = await assignment_svc.add_team_member(team_code, external_id, membership_role.value)
    return raise_for_outcome(result)


@router.delete("/{team_code}/members/{external_id}", response_model=MutationResponse)
@limit_writes
async def remove_team_member(
    request: Request,
    team_code: str,
    external_id: str,
    assignment_svc: Annotated[AssignmentService, Depends(get_assignment_service)],
    _: Annotated[str, Depends(require_permission("team:update"))],
):
    result = await assignment_svc.remove_team_member(team_code, external_id)
    return raise_for_outcome(result)
