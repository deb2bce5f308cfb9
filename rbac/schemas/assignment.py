"""Assignment API schemas (roles, team membership, instance permissions, ownership)."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from rbac.domain.enums import TeamMembershipRole


class RoleAssignRequest(BaseModel):
    """Request body for assigning a role to a subject or team."""

    role_code: str = Field(..., min_length=1, max_length=64)
    application_code: str | None = Field(default=None, max_length=64)
    resource_instance_id: str | None = Field(default=None, max_length=255)
    expires_at: datetime | None = None


class TeamMemberAddRequest(BaseModel):
    membership_role: TeamMembershipRole = TeamMembershipRole.MEMBER


class SubjectActiveRequest(BaseModel):
    is_active: bool


class InstancePermissionRequest(BaseModel):
    """Request body for granting or revoking a permission on one resource instance."""

    subject_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1, max_length=64)
    application_code: str | None = Field(default=None, max_length=64)
    expires_at: datetime | None = None


class ResourceOwnerRequest(BaseModel):
    """Request body for setting (or clearing with null) the owner of an instance."""

    owner_subject_id: str | None = None
    application_code: str | None = Field(default=None, max_length=64)


class MutationResponse(BaseModel):
    """Successful mutation outcome."""

    outcome: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
