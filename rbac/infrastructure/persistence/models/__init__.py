"""Persistence models: ORM entities and mixins."""

from rbac.infrastructure.persistence.models.catalog import (
    Action,
    Application,
    Permission,
    ResourceType,
)
from rbac.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    GrantMixin,
    TimestampMixin,
)
from rbac.infrastructure.persistence.models.resource import (
    InstancePermission,
    ResourceInstance,
)
from rbac.infrastructure.persistence.models.role import Role, RolePermission
from rbac.infrastructure.persistence.models.subject import Subject, SubjectRole
from rbac.infrastructure.persistence.models.team import Team, TeamMember, TeamRole

__all__ = [
    "Action",
    "Application",
    "CreatedAtMixin",
    "CuidMixin",
    "GrantMixin",
    "InstancePermission",
    "Permission",
    "ResourceInstance",
    "ResourceType",
    "Role",
    "RolePermission",
    "Subject",
    "SubjectRole",
    "Team",
    "TeamMember",
    "TeamRole",
    "TimestampMixin",
]
