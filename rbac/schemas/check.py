"""Permission check API schemas."""

from pydantic import BaseModel, Field


class PermissionCheckRequest(BaseModel):
    """Request body for POST /check."""

    subject_id: str = Field(..., min_length=1, description="Subject external id")
    permission: str = Field(..., min_length=1, description="app:resource:action or resource:action")
    resource_instance_id: str | None = Field(default=None, description="Resource instance external id")


class AnyPermissionCheckRequest(BaseModel):
    """Request body for POST /check/any."""

    subject_id: str = Field(..., min_length=1)
    permissions: list[str] = Field(..., max_length=100)
    resource_instance_id: str | None = None


class PermissionCheckResponse(BaseModel):
    """Allow/deny decision. reason is null when allowed."""

    allowed: bool
    reason: str | None = None


class PermissionsResponse(BaseModel):
    subject_id: str
    permissions: list[str]


class RolesResponse(BaseModel):
    subject_id: str
    roles: list[str]
