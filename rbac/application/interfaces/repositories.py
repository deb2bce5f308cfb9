"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.

Resource instance identifiers passed around here are the caller-facing
external ids (e.g. "doc-123"), never internal primary keys.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rbac.application.dtos.authorization import (
        InstanceGrant,
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


# Read port used by the permission resolver
class IPermissionStore(Protocol):
    """Read-only view over assignments, the role graph and the catalog.

    Grant listings include expired rows; expiry is decided by the resolver
    so that every source applies the same clock.
    """

    async def get_subject_by_external_id(self, external_id: str) -> SubjectRef | None:
        """Return the first subject with this external id (any provider)."""

    async def list_subject_role_grants(
        self, subject_id: str, resource_instance_id: str | None = None
    ) -> list[RoleGrant]:
        """Return unscoped role grants of the subject, plus grants scoped to
        exactly resource_instance_id when it is given."""

    async def list_team_role_grants(
        self, subject_id: str, resource_instance_id: str | None = None
    ) -> list[RoleGrant]:
        """Same as list_subject_role_grants, for every active team the subject belongs to."""

    async def get_roles_by_ids(self, role_ids: Iterable[str]) -> dict[str, RoleNode]:
        """Return role nodes (with direct permission codes) keyed by role id."""

    async def list_instance_grants(
        self, subject_id: str, resource_instance_id: str
    ) -> list[InstanceGrant]:
        """Return direct permission grants of the subject on the instance."""

    async def is_resource_owner(
        self,
        subject_id: str,
        resource_instance_id: str,
        application_code: str,
        resource_type_code: str,
    ) -> bool:
        """Return True if the subject owns the instance of that application and resource type."""


# Catalog repository interface
class ICatalogRepository(Protocol):
    """Protocol for applications, resource types, actions, permissions and instances."""

    async def get_application_by_code(self, code: str) -> ApplicationResult | None:
        """Return application by code."""

    async def create_application(
        self, code: str, name: str, description: str | None = None
    ) -> ApplicationResult:
        """Create application."""

    async def get_resource_type(
        self, application_code: str, code: str
    ) -> ResourceTypeResult | None:
        """Return resource type by application code and resource type code."""

    async def create_resource_type(
        self,
        application_id: str,
        code: str,
        name: str | None = None,
        supports_instances: bool = True,
    ) -> ResourceTypeResult:
        """Create resource type in application."""

    async def get_or_create_action(self, code: str, name: str | None = None) -> str:
        """Return the id of the action with this code, creating it if missing."""

    async def get_permission(
        self, application_code: str, resource_type_code: str, action_code: str
    ) -> PermissionResult | None:
        """Return catalog permission for the triple."""

    async def create_permission(
        self, resource_type_id: str, action_code: str, description: str | None = None
    ) -> PermissionResult:
        """Create permission (resource type + action), creating the action if needed."""

    async def get_resource_instance(
        self, resource_type_id: str, external_id: str
    ) -> ResourceInstanceResult | None:
        """Return resource instance by resource type and external id."""

    async def create_resource_instance(
        self,
        resource_type_id: str,
        external_id: str,
        owner_subject_id: str | None = None,
        display_name: str | None = None,
    ) -> ResourceInstanceResult:
        """Register a resource instance."""

    async def set_resource_owner(
        self, instance_id: str, owner_subject_id: str | None
    ) -> ResourceInstanceResult | None:
        """Set or clear the owner of an instance; None if the instance does not exist."""


# Subject repository interface
class ISubjectRepository(Protocol):
    """Protocol for subject repository (DIP)."""

    async def get_by_id(self, subject_id: str) -> SubjectResult | None:
        """Return subject by ID."""

    async def get_by_external_id(self, external_id: str) -> SubjectResult | None:
        """Return the first subject with this external id (any provider)."""

    async def get_by_ids(self, subject_ids: Iterable[str]) -> list[SubjectResult]:
        """Return subjects for the given ids (batch)."""

    async def create_subject(
        self,
        external_id: str,
        provider: str = "local",
        subject_type: str = "user",
        email: str | None = None,
        display_name: str | None = None,
        is_active: bool = True,
    ) -> SubjectResult:
        """Create subject; raises DuplicateAssignmentException on (provider, external_id) clash."""

    async def set_active(self, subject_id: str, is_active: bool) -> SubjectResult | None:
        """Activate or deactivate subject; None if not found."""


# Team repository interface
class ITeamRepository(Protocol):
    """Protocol for teams and team membership."""

    async def get_by_code(self, code: str) -> TeamResult | None:
        """Return team by code."""

    async def create_team(
        self,
        code: str,
        name: str,
        description: str | None = None,
        parent_team_id: str | None = None,
    ) -> TeamResult:
        """Create team."""

    async def list_member_external_ids(self, team_id: str) -> list[str]:
        """Return the external ids of every member of the team (cache keys)."""

    async def is_member(self, team_id: str, subject_id: str) -> bool:
        """Return True if subject is a member of team."""

    async def add_member(self, team_id: str, subject_id: str, membership_role: str) -> None:
        """Add member; raises DuplicateAssignmentException if already a member."""

    async def remove_member(self, team_id: str, subject_id: str) -> bool:
        """Remove member; return False if not a member."""


# Role repository interface
class IRoleRepository(Protocol):
    """Protocol for roles and role-permission links."""

    async def get_by_id(self, role_id: str) -> RoleResult | None:
        """Return role by ID."""

    async def get_by_code(self, code: str, application_id: str | None) -> RoleResult | None:
        """Return role with code in exactly this scope (None = global roles)."""

    async def create_role(
        self,
        code: str,
        name: str,
        application_id: str | None = None,
        parent_role_id: str | None = None,
        description: str | None = None,
        is_system: bool = False,
    ) -> RoleResult:
        """Create role; raises DuplicateAssignmentException on code clash in scope."""

    async def set_parent(self, role_id: str, parent_role_id: str | None) -> None:
        """Set or clear the parent of a role."""

    async def has_permission(self, role_id: str, permission_id: str) -> bool:
        """Return True if the permission is attached to the role."""

    async def add_permission(self, role_id: str, permission_id: str) -> None:
        """Attach permission to role."""

    async def remove_permission(self, role_id: str, permission_id: str) -> bool:
        """Detach permission from role; False if it was not attached."""

    async def delete_role(self, role_id: str) -> bool:
        """Delete role with its permission links and assignments; children lose their parent."""


# Assignment repository interface
class IAssignmentRepository(Protocol):
    """Protocol for subject/team role assignments and instance permissions.

    resource_instance_id None means the unscoped assignment.
    """

    async def get_subject_role(
        self, subject_id: str, role_id: str, resource_instance_id: str | None
    ) -> RoleGrant | None:
        """Return existing subject role assignment (expired or not)."""

    async def upsert_subject_role(
        self,
        subject_id: str,
        role_id: str,
        resource_instance_id: str | None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> None:
        """Create the assignment, or renew an existing one with new expiry."""

    async def delete_subject_role(
        self, subject_id: str, role_id: str, resource_instance_id: str | None
    ) -> bool:
        """Delete subject role assignment; False if absent."""

    async def get_team_role(
        self, team_id: str, role_id: str, resource_instance_id: str | None
    ) -> RoleGrant | None:
        """Return existing team role assignment (expired or not)."""

    async def upsert_team_role(
        self,
        team_id: str,
        role_id: str,
        resource_instance_id: str | None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> None:
        """Create the assignment, or renew an existing one with new expiry."""

    async def delete_team_role(
        self, team_id: str, role_id: str, resource_instance_id: str | None
    ) -> bool:
        """Delete team role assignment; False if absent."""

    async def get_instance_permission(
        self, instance_id: str, subject_id: str, permission: PermissionResult
    ) -> InstanceGrant | None:
        """Return existing instance permission grant (expired or not)."""

    async def upsert_instance_permission(
        self,
        instance_id: str,
        subject_id: str,
        permission_id: str,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> None:
        """Create the grant, or renew an existing one with new expiry."""

    async def delete_instance_permission(
        self, instance_id: str, subject_id: str, permission_id: str
    ) -> bool:
        """Delete instance permission grant; False if absent."""


# Transaction boundary used by mutation services
class IUnitOfWork(Protocol):
    """Commits or discards pending repository changes (an AsyncSession satisfies this)."""

    async def commit(self) -> None:
        """Commit the current transaction."""

    async def rollback(self) -> None:
        """Discard the current transaction."""
