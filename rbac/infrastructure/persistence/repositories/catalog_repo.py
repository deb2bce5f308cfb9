"""Catalog repository: applications, resource types, actions, permissions and resource instances."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.dtos.catalog import (
    ApplicationResult,
    PermissionResult,
    ResourceInstanceResult,
    ResourceTypeResult,
)
from rbac.core.constants import PERMISSION_CODE_SEP
from rbac.infrastructure.persistence.models.catalog import (
    Action,
    Application,
    Permission,
    ResourceType,
)
from rbac.infrastructure.persistence.models.resource import ResourceInstance
from rbac.infrastructure.persistence.repositories.base import BaseRepository


def _instance_to_result(ri: ResourceInstance) -> ResourceInstanceResult:
    return ResourceInstanceResult(
        id=ri.id,
        resource_type_id=ri.resource_type_id,
        external_id=ri.external_id,
        owner_subject_id=ri.owner_subject_id,
    )


class CatalogRepository(BaseRepository[Application]):
    """Catalog lookups by code; creation helpers used by tests and role setup."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Application)

    async def get_application_by_code(self, code: str) -> ApplicationResult | None:
        result = await self.db.execute(select(Application).where(Application.code == code))
        row = result.scalar_one_or_none()
        return ApplicationResult(id=row.id, code=row.code, name=row.name) if row else None

    async def create_application(
        self, code: str, name: str, description: str | None = None
    ) -> ApplicationResult:
        app = await self.create(
            Application(code=code, name=name, description=description),
            assignment_type="application",
            details={"code": code},
        )
        return ApplicationResult(id=app.id, code=app.code, name=app.name)

    async def get_resource_type(
        self, application_code: str, code: str
    ) -> ResourceTypeResult | None:
        result = await self.db.execute(
            select(ResourceType, Application.code)
            .join(Application, Application.id == ResourceType.application_id)
            .where(Application.code == application_code, ResourceType.code == code)
        )
        row = result.first()
        if row is None:
            return None
        rt, app_code = row
        return ResourceTypeResult(
            id=rt.id,
            application_id=rt.application_id,
            application_code=app_code,
            code=rt.code,
            supports_instances=rt.supports_instances,
        )

    async def create_resource_type(
        self,
        application_id: str,
        code: str,
        name: str | None = None,
        supports_instances: bool = True,
    ) -> ResourceTypeResult:
        application = await self.get_entity_by_id(application_id)
        if application is None:
            raise ValueError(f"Unknown application id: {application_id}")
        rt = ResourceType(
            application_id=application_id,
            code=code,
            name=name or code,
            supports_instances=supports_instances,
        )
        self.db.add(rt)
        await self.db.flush()
        return ResourceTypeResult(
            id=rt.id,
            application_id=application_id,
            application_code=application.code,
            code=rt.code,
            supports_instances=rt.supports_instances,
        )

    async def get_or_create_action(self, code: str, name: str | None = None) -> str:
        result = await self.db.execute(select(Action.id).where(Action.code == code))
        action_id = result.scalar_one_or_none()
        if action_id is not None:
            return action_id
        action = Action(code=code, name=name or code)
        self.db.add(action)
        await self.db.flush()
        return action.id

    async def get_permission(
        self, application_code: str, resource_type_code: str, action_code: str
    ) -> PermissionResult | None:
        result = await self.db.execute(
            select(Permission.id, Permission.resource_type_id, Permission.action_id)
            .join(ResourceType, ResourceType.id == Permission.resource_type_id)
            .join(Application, Application.id == ResourceType.application_id)
            .join(Action, Action.id == Permission.action_id)
            .where(
                Application.code == application_code,
                ResourceType.code == resource_type_code,
                Action.code == action_code,
            )
        )
        row = result.first()
        if row is None:
            return None
        return PermissionResult(
            id=row.id,
            resource_type_id=row.resource_type_id,
            action_id=row.action_id,
            code=PERMISSION_CODE_SEP.join((application_code, resource_type_code, action_code)),
        )

    async def create_permission(
        self, resource_type_id: str, action_code: str, description: str | None = None
    ) -> PermissionResult:
        result = await self.db.execute(
            select(ResourceType.code, Application.code)
            .join(Application, Application.id == ResourceType.application_id)
            .where(ResourceType.id == resource_type_id)
        )
        row = result.first()
        if row is None:
            raise ValueError(f"Unknown resource type id: {resource_type_id}")
        resource_type_code, application_code = row
        action_id = await self.get_or_create_action(action_code)
        perm = Permission(
            resource_type_id=resource_type_id, action_id=action_id, description=description
        )
        self.db.add(perm)
        await self.db.flush()
        return PermissionResult(
            id=perm.id,
            resource_type_id=resource_type_id,
            action_id=action_id,
            code=PERMISSION_CODE_SEP.join((application_code, resource_type_code, action_code)),
        )

    async def get_resource_instance(
        self, resource_type_id: str, external_id: str
    ) -> ResourceInstanceResult | None:
        result = await self.db.execute(
            select(ResourceInstance).where(
                ResourceInstance.resource_type_id == resource_type_id,
                ResourceInstance.external_id == external_id,
            )
        )
        row = result.scalar_one_or_none()
        return _instance_to_result(row) if row else None

    async def create_resource_instance(
        self,
        resource_type_id: str,
        external_id: str,
        owner_subject_id: str | None = None,
        display_name: str | None = None,
    ) -> ResourceInstanceResult:
        ri = ResourceInstance(
            resource_type_id=resource_type_id,
            external_id=external_id,
            owner_subject_id=owner_subject_id,
            display_name=display_name,
        )
        self.db.add(ri)
        await self.db.flush()
        return _instance_to_result(ri)

    async def set_resource_owner(
        self, instance_id: str, owner_subject_id: str | None
    ) -> ResourceInstanceResult | None:
        result = await self.db.execute(
            select(ResourceInstance).where(ResourceInstance.id == instance_id)
        )
        ri = result.scalar_one_or_none()
        if ri is None:
            return None
        ri.owner_subject_id = owner_subject_id
        await self.db.flush()
        return _instance_to_result(ri)
