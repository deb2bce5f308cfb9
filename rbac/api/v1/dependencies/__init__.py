"""API v1 dependencies: caller identity, services and the authorization gate."""

from rbac.api.v1.dependencies.auth import (
    get_current_subject_id,
    get_current_subject_id_optional,
)
from rbac.api.v1.dependencies.authorization import (
    AnyPermissionRequirement,
    AuthorizationGate,
    PermissionRequirement,
    RoleRequirement,
    require_any_permission,
    require_permission,
    require_role,
    resolve_resource_id,
)
from rbac.api.v1.dependencies.services import (
    get_assignment_service,
    get_authorization_service,
    get_role_service,
)

__all__ = [
    "AnyPermissionRequirement",
    "AuthorizationGate",
    "PermissionRequirement",
    "RoleRequirement",
    "get_assignment_service",
    "get_authorization_service",
    "get_current_subject_id",
    "get_current_subject_id_optional",
    "get_role_service",
    "require_any_permission",
    "require_permission",
    "require_role",
    "resolve_resource_id",
]
