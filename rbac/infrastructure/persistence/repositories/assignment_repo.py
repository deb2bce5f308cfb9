"""Assignment repository: subject roles, team roles and instance permissions.

resource_instance_id on role assignments is the instance external id; None
selects the unscoped assignment.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.dtos.authorization import InstanceGrant, RoleGrant
from rbac.application.dtos.catalog import PermissionResult
from rbac.infrastructure.persistence.models.resource import InstancePermission
from rbac.infrastructure.persistence.models.subject import SubjectRole
from rbac.infrastructure.persistence.models.team import TeamRole
from rbac.infrastructure.persistence.repositories.base import BaseRepository
from rbac.shared.utils.datetime import utc_now


def _scope(column: Any, resource_instance_id: str | None) -> Any:
    return column.is_(None) if resource_instance_id is None else column == resource_instance_id


class AssignmentRepository(BaseRepository[SubjectRole]):
    """Grant rows. upsert_* renews an existing row instead of duplicating it."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, SubjectRole)

    # Subject roles

    async def _subject_role_row(
        self, subject_id: str, role_id: str, resource_instance_id: str | None
    ) -> SubjectRole | None:
        result = await self.db.execute(
            select(SubjectRole).where(
                SubjectRole.subject_id == subject_id,
                SubjectRole.role_id == role_id,
                _scope(SubjectRole.resource_instance_id, resource_instance_id),
            )
        )
        return result.scalars().first()

    async def get_subject_role(
        self, subject_id: str, role_id: str, resource_instance_id: str | None
    ) -> RoleGrant | None:
        row = await self._subject_role_row(subject_id, role_id, resource_instance_id)
        if row is None:
            return None
        return RoleGrant(row.role_id, row.resource_instance_id, row.expires_at)

    async def upsert_subject_role(
        self,
        subject_id: str,
        role_id: str,
        resource_instance_id: str | None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> None:
        row = await self._subject_role_row(subject_id, role_id, resource_instance_id)
        if row is None:
            self.db.add(
                SubjectRole(
                    subject_id=subject_id,
                    role_id=role_id,
                    resource_instance_id=resource_instance_id,
                    expires_at=expires_at,
                    granted_by=granted_by,
                )
            )
        else:
            row.expires_at = expires_at
            row.granted_by = granted_by
            row.granted_at = utc_now()
        await self.flush_unique(
            "Role already assigned to subject",
            "subject_role",
            {"subject_id": subject_id, "role_id": role_id},
        )

    async def delete_subject_role(
        self, subject_id: str, role_id: str, resource_instance_id: str | None
    ) -> bool:
        result = await self.db.execute(
            delete(SubjectRole).where(
                SubjectRole.subject_id == subject_id,
                SubjectRole.role_id == role_id,
                _scope(SubjectRole.resource_instance_id, resource_instance_id),
            )
        )
        return (result.rowcount or 0) > 0

    # Team roles

    async def _team_role_row(
        self, team_id: str, role_id: str, resource_instance_id: str | None
    ) -> TeamRole | None:
        result = await self.db.execute(
            select(TeamRole).where(
                TeamRole.team_id == team_id,
                TeamRole.role_id == role_id,
                _scope(TeamRole.resource_instance_id, resource_instance_id),
            )
        )
        return result.scalars().first()

    async def get_team_role(
        self, team_id: str, role_id: str, resource_instance_id: str | None
    ) -> RoleGrant | None:
        row = await self._team_role_row(team_id, role_id, resource_instance_id)
        if row is None:
            return None
        return RoleGrant(row.role_id, row.resource_instance_id, row.expires_at)

    async def upsert_team_role(
        self,
        team_id: str,
        role_id: str,
        resource_instance_id: str | None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> None:
        row = await self._team_role_row(team_id, role_id, resource_instance_id)
        if row is None:
            self.db.add(
                TeamRole(
                    team_id=team_id,
                    role_id=role_id,
                    resource_instance_id=resource_instance_id,
                    expires_at=expires_at,
                    granted_by=granted_by,
                )
            )
        else:
            row.expires_at = expires_at
            row.granted_by = granted_by
            row.granted_at = utc_now()
        await self.flush_unique(
            "Role already assigned to team",
            "team_role",
            {"team_id": team_id, "role_id": role_id},
        )

    async def delete_team_role(
        self, team_id: str, role_id: str, resource_instance_id: str | None
    ) -> bool:
        result = await self.db.execute(
            delete(TeamRole).where(
                TeamRole.team_id == team_id,
                TeamRole.role_id == role_id,
                _scope(TeamRole.resource_instance_id, resource_instance_id),
            )
        )
        return (result.rowcount or 0) > 0

    # Instance permissions

    async def _instance_permission_row(
        self, instance_id: str, subject_id: str, permission_id: str
    ) -> InstancePermission | None:
        result = await self.db.execute(
            select(InstancePermission).where(
                InstancePermission.resource_instance_id == instance_id,
                InstancePermission.subject_id == subject_id,
                InstancePermission.permission_id == permission_id,
            )
        )
        return result.scalars().first()

    async def get_instance_permission(
        self, instance_id: str, subject_id: str, permission: PermissionResult
    ) -> InstanceGrant | None:
        row = await self._instance_permission_row(instance_id, subject_id, permission.id)
        if row is None:
            return None
        return InstanceGrant(permission_code=permission.code, expires_at=row.expires_at)

    async def upsert_instance_permission(
        self,
        instance_id: str,
        subject_id: str,
        permission_id: str,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> None:
        row = await self._instance_permission_row(instance_id, subject_id, permission_id)
        if row is None:
            self.db.add(
                InstancePermission(
                    resource_instance_id=instance_id,
                    subject_id=subject_id,
                    permission_id=permission_id,
                    expires_at=expires_at,
                    granted_by=granted_by,
                )
            )
        else:
            row.expires_at = expires_at
            row.granted_by = granted_by
            row.granted_at = utc_now()
        await self.flush_unique(
            "Permission already granted on instance",
            "instance_permission",
            {"instance_id": instance_id, "subject_id": subject_id},
        )

    async def delete_instance_permission(
        self, instance_id: str, subject_id: str, permission_id: str
    ) -> bool:
        result = await self.db.execute(
            delete(InstancePermission).where(
                InstancePermission.resource_instance_id == instance_id,
                InstancePermission.subject_id == subject_id,
                InstancePermission.permission_id == permission_id,
            )
        )
        return (result.rowcount or 0) > 0
