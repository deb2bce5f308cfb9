"""Application services: resolution, cached authorization and mutations."""

from rbac.application.services.assignment_service import AssignmentService
from rbac.application.services.authorization_service import AuthorizationService
from rbac.application.services.permission_resolver import PermissionResolver
from rbac.application.services.role_service import RoleService

__all__ = [
    "AssignmentService",
    "AuthorizationService",
    "PermissionResolver",
    "RoleService",
]
