"""Role repository: roles, parent links and role-permission links.

Read methods return RoleResult (DTO).
"""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.dtos.catalog import RoleResult
from rbac.infrastructure.persistence.models.catalog import Application
from rbac.infrastructure.persistence.models.role import Role, RolePermission
from rbac.infrastructure.persistence.models.subject import SubjectRole
from rbac.infrastructure.persistence.models.team import TeamRole
from rbac.infrastructure.persistence.repositories.base import BaseRepository


def _role_to_result(r: Role, application_code: str | None) -> RoleResult:
    """Map ORM Role to application RoleResult."""
    return RoleResult(
        id=r.id,
        code=r.code,
        name=r.name,
        application_id=r.application_id,
        application_code=application_code,
        parent_role_id=r.parent_role_id,
        is_system=r.is_system,
        description=r.description,
    )


class RoleRepository(BaseRepository[Role]):
    """Role graph storage."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Role)

    def _select_with_application(self):
        return select(Role, Application.code).outerjoin(
            Application, Application.id == Role.application_id
        )

    async def get_by_id(self, role_id: str) -> RoleResult | None:
        result = await self.db.execute(self._select_with_application().where(Role.id == role_id))
        row = result.first()
        return _role_to_result(*row) if row else None

    async def get_by_code(self, code: str, application_id: str | None) -> RoleResult | None:
        """Return role with code in exactly this scope (application_id None = global)."""
        scope = (
            Role.application_id.is_(None)
            if application_id is None
            else Role.application_id == application_id
        )
        result = await self.db.execute(
            self._select_with_application().where(Role.code == code, scope)
        )
        row = result.first()
        return _role_to_result(*row) if row else None

    async def create_role(
        self,
        code: str,
        name: str,
        application_id: str | None = None,
        parent_role_id: str | None = None,
        description: str | None = None,
        is_system: bool = False,
    ) -> RoleResult:
        role = Role(
            code=code,
            name=name,
            application_id=application_id,
            parent_role_id=parent_role_id,
            description=description,
            is_system=is_system,
        )
        created = await self.create(role, assignment_type="role", details={"role_code": code})
        return await self.get_by_id(created.id)

    async def set_parent(self, role_id: str, parent_role_id: str | None) -> None:
        await self.db.execute(
            update(Role).where(Role.id == role_id).values(parent_role_id=parent_role_id)
        )

    async def has_permission(self, role_id: str, permission_id: str) -> bool:
        result = await self.db.execute(
            select(RolePermission.id).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
        )
        return result.first() is not None

    async def add_permission(self, role_id: str, permission_id: str) -> None:
        self.db.add(RolePermission(role_id=role_id, permission_id=permission_id))
        await self.flush_unique(
            "Permission already assigned to role",
            "role_permission",
            {"role_id": role_id, "permission_id": permission_id},
        )

    async def remove_permission(self, role_id: str, permission_id: str) -> bool:
        result = await self.db.execute(
            delete(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
        )
        return (result.rowcount or 0) > 0

    async def delete_role(self, role_id: str) -> bool:
        """Delete role, its permission links and every assignment of it.

        Child roles are detached (parent cleared) rather than deleted.
        """
        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        await self.db.execute(delete(SubjectRole).where(SubjectRole.role_id == role_id))
        await self.db.execute(delete(TeamRole).where(TeamRole.role_id == role_id))
        await self.db.execute(
            update(Role).where(Role.parent_role_id == role_id).values(parent_role_id=None)
        )
        result = await self.db.execute(delete(Role).where(Role.id == role_id))
        return (result.rowcount or 0) > 0
