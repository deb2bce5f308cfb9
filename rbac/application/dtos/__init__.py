"""Application DTOs (no ORM dependency)."""

from rbac.application.dtos.authorization import (
    CachedAccess,
    EffectiveAccess,
    InstanceGrant,
    PermissionCheckResult,
    RoleGrant,
    RoleNode,
    SubjectRef,
)
from rbac.application.dtos.catalog import (
    ApplicationResult,
    PermissionResult,
    ResourceInstanceResult,
    ResourceTypeResult,
    RoleResult,
    SubjectResult,
    TeamResult,
)
from rbac.application.dtos.mutation import MutationResult

__all__ = [
    "ApplicationResult",
    "CachedAccess",
    "EffectiveAccess",
    "InstanceGrant",
    "MutationResult",
    "PermissionCheckResult",
    "PermissionResult",
    "ResourceInstanceResult",
    "ResourceTypeResult",
    "RoleGrant",
    "RoleNode",
    "RoleResult",
    "SubjectRef",
    "SubjectResult",
    "TeamResult",
]
