"""SQL-backed read store for permission resolution (implements IPermissionStore).

All queries are plain reads; expiry filtering is left to the resolver, which
normalizes SQLite's naive datetimes with ensure_utc().
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import ColumnElement, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.dtos.authorization import InstanceGrant, RoleGrant, RoleNode, SubjectRef
from rbac.core.constants import PERMISSION_CODE_SEP
from rbac.infrastructure.persistence.models.catalog import (
    Action,
    Application,
    Permission,
    ResourceType,
)
from rbac.infrastructure.persistence.models.resource import InstancePermission, ResourceInstance
from rbac.infrastructure.persistence.models.role import Role, RolePermission
from rbac.infrastructure.persistence.models.subject import Subject, SubjectRole
from rbac.infrastructure.persistence.models.team import Team, TeamMember, TeamRole


def _permission_code(application: str, resource_type: str, action: str) -> str:
    return PERMISSION_CODE_SEP.join((application, resource_type, action))


def _scope_clause(column, resource_instance_id: str | None) -> ColumnElement[bool]:
    """Unscoped rows, plus rows scoped to exactly resource_instance_id when given."""
    if resource_instance_id is None:
        return column.is_(None)
    return or_(column.is_(None), column == resource_instance_id)


class SqlPermissionStore:
    """Resolves grants, role graph and ownership with SQLAlchemy queries."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_subject_by_external_id(self, external_id: str) -> SubjectRef | None:
        result = await self.db.execute(
            select(Subject.id, Subject.external_id, Subject.is_active)
            .where(Subject.external_id == external_id)
            .order_by(Subject.created_at, Subject.id)
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        return SubjectRef(id=row.id, external_id=row.external_id, is_active=row.is_active)

    async def list_subject_role_grants(
        self, subject_id: str, resource_instance_id: str | None = None
    ) -> list[RoleGrant]:
        result = await self.db.execute(
            select(
                SubjectRole.role_id,
                SubjectRole.resource_instance_id,
                SubjectRole.expires_at,
            ).where(
                SubjectRole.subject_id == subject_id,
                _scope_clause(SubjectRole.resource_instance_id, resource_instance_id),
            )
        )
        return [
            RoleGrant(
                role_id=row.role_id,
                resource_instance_id=row.resource_instance_id,
                expires_at=row.expires_at,
            )
            for row in result.all()
        ]

    async def list_team_role_grants(
        self, subject_id: str, resource_instance_id: str | None = None
    ) -> list[RoleGrant]:
        result = await self.db.execute(
            select(TeamRole.role_id, TeamRole.resource_instance_id, TeamRole.expires_at)
            .join(TeamMember, TeamMember.team_id == TeamRole.team_id)
            .join(Team, Team.id == TeamRole.team_id)
            .where(
                TeamMember.subject_id == subject_id,
                Team.is_active.is_(True),
                _scope_clause(TeamRole.resource_instance_id, resource_instance_id),
            )
        )
        return [
            RoleGrant(
                role_id=row.role_id,
                resource_instance_id=row.resource_instance_id,
                expires_at=row.expires_at,
            )
            for row in result.all()
        ]

    async def get_roles_by_ids(self, role_ids: Iterable[str]) -> dict[str, RoleNode]:
        ids = list(set(role_ids))
        if not ids:
            return {}
        roles_result = await self.db.execute(
            select(Role.id, Role.code, Role.parent_role_id, Application.code.label("application_code"))
            .outerjoin(Application, Application.id == Role.application_id)
            .where(Role.id.in_(ids))
        )
        roles = roles_result.all()

        perms_result = await self.db.execute(
            select(
                RolePermission.role_id,
                Application.code.label("application_code"),
                ResourceType.code.label("resource_type_code"),
                Action.code.label("action_code"),
            )
            .join(Permission, Permission.id == RolePermission.permission_id)
            .join(ResourceType, ResourceType.id == Permission.resource_type_id)
            .join(Application, Application.id == ResourceType.application_id)
            .join(Action, Action.id == Permission.action_id)
            .where(RolePermission.role_id.in_(ids))
        )
        codes: dict[str, set[str]] = defaultdict(set)
        for row in perms_result.all():
            codes[row.role_id].add(
                _permission_code(row.application_code, row.resource_type_code, row.action_code)
            )

        return {
            row.id: RoleNode(
                id=row.id,
                code=row.code,
                application_code=row.application_code,
                parent_role_id=row.parent_role_id,
                permission_codes=frozenset(codes.get(row.id, ())),
            )
            for row in roles
        }

    async def list_instance_grants(
        self, subject_id: str, resource_instance_id: str
    ) -> list[InstanceGrant]:
        result = await self.db.execute(
            select(
                InstancePermission.expires_at,
                Application.code.label("application_code"),
                ResourceType.code.label("resource_type_code"),
                Action.code.label("action_code"),
            )
            .join(ResourceInstance, ResourceInstance.id == InstancePermission.resource_instance_id)
            .join(Permission, Permission.id == InstancePermission.permission_id)
            .join(ResourceType, ResourceType.id == Permission.resource_type_id)
            .join(Application, Application.id == ResourceType.application_id)
            .join(Action, Action.id == Permission.action_id)
            .where(
                InstancePermission.subject_id == subject_id,
                ResourceInstance.external_id == resource_instance_id,
            )
        )
        return [
            InstanceGrant(
                permission_code=_permission_code(
                    row.application_code, row.resource_type_code, row.action_code
                ),
                expires_at=row.expires_at,
            )
            for row in result.all()
        ]

    async def is_resource_owner(
        self,
        subject_id: str,
        resource_instance_id: str,
        application_code: str,
        resource_type_code: str,
    ) -> bool:
        result = await self.db.execute(
            select(ResourceInstance.id)
            .join(ResourceType, ResourceType.id == ResourceInstance.resource_type_id)
            .join(Application, Application.id == ResourceType.application_id)
            .where(
                ResourceInstance.external_id == resource_instance_id,
                ResourceInstance.owner_subject_id == subject_id,
                ResourceType.code == resource_type_code,
                Application.code == application_code,
            )
            .limit(1)
        )
        return result.first() is not None
