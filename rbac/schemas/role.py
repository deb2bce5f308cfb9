"""Role API schemas."""

from pydantic import BaseModel, Field


class RoleCreateRequest(BaseModel):
    """Request body for creating a role. Global when application_code is null."""

    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    application_code: str | None = Field(default=None, max_length=64)
    parent_role_code: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=500)
    permission_codes: list[str] = Field(default_factory=list, max_length=100)
    is_system: bool = False


class RoleParentRequest(BaseModel):
    """Request body for setting (or clearing with null) a role's parent."""

    parent_role_code: str | None = None
    application_code: str | None = Field(default=None, max_length=64)


class RolePermissionRequest(BaseModel):
    permission: str = Field(..., min_length=1)
    application_code: str | None = Field(default=None, max_length=64)
