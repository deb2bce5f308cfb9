"""Role application service: role graph and role-permission maintenance.

Any change here can alter the effective permissions of many subjects at
once, so every successful mutation drops the whole resolution cache.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from rbac.application.dtos.catalog import PermissionResult, RoleResult
from rbac.application.dtos.mutation import MutationResult
from rbac.application.interfaces.repositories import (
    ICatalogRepository,
    IRoleRepository,
    IUnitOfWork,
)
from rbac.application.interfaces.services import IAccessInvalidator
from rbac.application.services.role_lookup import find_role
from rbac.core.constants import PERMISSION_CODE_SEP
from rbac.domain.value_objects.permission_code import PermissionCode

logger = logging.getLogger(__name__)


def _is_valid_code(code: str) -> bool:
    return (
        bool(code)
        and code == code.strip()
        and PERMISSION_CODE_SEP not in code
        and " " not in code
    )


class RoleService:
    """Create roles, re-parent them with cycle detection, attach and detach permissions."""

    def __init__(
        self,
        uow: IUnitOfWork,
        roles: IRoleRepository,
        catalog: ICatalogRepository,
        invalidator: IAccessInvalidator,
        default_application_code: str | None = None,
    ) -> None:
        self._uow = uow
        self._roles = roles
        self._catalog = catalog
        self._invalidator = invalidator
        self._default_application_code = default_application_code

    async def create_role(
        self,
        code: str,
        name: str,
        application_code: str | None = None,
        parent_role_code: str | None = None,
        permission_codes: Sequence[str] = (),
        description: str | None = None,
        is_system: bool = False,
    ) -> MutationResult:
        """Create a role, global when application_code is None.

        All permission codes are validated before anything is written.
        """
        if not _is_valid_code(code):
            return MutationResult.invalid(f"Invalid role code '{code}'", role_code=code)

        application_id: str | None = None
        if application_code:
            application = await self._catalog.get_application_by_code(application_code)
            if application is None:
                return MutationResult.not_found(
                    f"Application '{application_code}' not found",
                    application_code=application_code,
                )
            application_id = application.id
        if await self._roles.get_by_code(code, application_id) is not None:
            return MutationResult.conflict(
                f"Role '{code}' already exists", role_code=code, application_code=application_code
            )

        parent: RoleResult | None = None
        if parent_role_code:
            parent = await self._find_role(parent_role_code, application_code)
            if parent is None:
                return MutationResult.not_found(
                    f"Parent role '{parent_role_code}' not found", role_code=parent_role_code
                )

        permissions: dict[str, PermissionResult] = {}
        for permission_code in permission_codes:
            permission, failure = await self._lookup_permission(permission_code, application_code)
            if failure is not None:
                return failure
            permissions.setdefault(permission.id, permission)

        role = await self._roles.create_role(
            code=code,
            name=name,
            application_id=application_id,
            parent_role_id=parent.id if parent else None,
            description=description,
            is_system=is_system,
        )
        for permission in permissions.values():
            await self._roles.add_permission(role.id, permission.id)
        await self._commit_and_invalidate()
        logger.info(
            "Created role %s (application=%s, parent=%s, %s permissions)",
            code,
            application_code,
            parent_role_code,
            len(permissions),
        )
        return MutationResult.success(
            "Role created",
            role_id=role.id,
            role_code=code,
            application_code=application_code,
            permissions=[p.code for p in permissions.values()],
        )

    async def set_parent_role(
        self,
        role_code: str,
        parent_role_code: str | None,
        application_code: str | None = None,
    ) -> MutationResult:
        """Set or clear a role's parent. Refuses self-parenting and cycles."""
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)
        parent_id: str | None = None
        if parent_role_code:
            parent = await self._find_role(parent_role_code, application_code)
            if parent is None:
                return _role_not_found(parent_role_code)
            if parent.id == role.id:
                return MutationResult.invalid(
                    "A role cannot be its own parent", role_code=role_code
                )
            if await self._is_ancestor(role.id, parent):
                return MutationResult.invalid(
                    f"Setting '{parent_role_code}' as parent of '{role_code}' would create a cycle",
                    role_code=role_code,
                    parent_role_code=parent_role_code,
                )
            parent_id = parent.id
        await self._roles.set_parent(role.id, parent_id)
        await self._commit_and_invalidate()
        logger.info("Parent of role %s set to %s", role_code, parent_role_code)
        return MutationResult.success(
            "Role parent updated", role_code=role_code, parent_role_code=parent_role_code
        )

    async def add_permission(
        self, role_code: str, permission_code: str, application_code: str | None = None
    ) -> MutationResult:
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)
        permission, failure = await self._lookup_permission(
            permission_code, application_code or role.application_code
        )
        if failure is not None:
            return failure
        if await self._roles.has_permission(role.id, permission.id):
            return MutationResult.conflict(
                "Permission already assigned to role",
                role_code=role_code,
                permission=permission.code,
            )
        await self._roles.add_permission(role.id, permission.id)
        await self._commit_and_invalidate()
        logger.info("Added permission %s to role %s", permission.code, role_code)
        return MutationResult.success(
            "Permission added to role", role_code=role_code, permission=permission.code
        )

    async def remove_permission(
        self, role_code: str, permission_code: str, application_code: str | None = None
    ) -> MutationResult:
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)
        permission, failure = await self._lookup_permission(
            permission_code, application_code or role.application_code
        )
        if failure is not None:
            return failure
        if not await self._roles.remove_permission(role.id, permission.id):
            return MutationResult.not_found(
                "Permission is not assigned to role",
                role_code=role_code,
                permission=permission.code,
            )
        await self._commit_and_invalidate()
        logger.info("Removed permission %s from role %s", permission.code, role_code)
        return MutationResult.success(
            "Permission removed from role", role_code=role_code, permission=permission.code
        )

    async def delete_role(
        self, role_code: str, application_code: str | None = None
    ) -> MutationResult:
        """Delete a non-system role together with its assignments."""
        role = await self._find_role(role_code, application_code)
        if role is None:
            return _role_not_found(role_code)
        if role.is_system:
            return MutationResult.conflict(
                f"System role '{role_code}' cannot be deleted", role_code=role_code
            )
        await self._roles.delete_role(role.id)
        await self._commit_and_invalidate()
        logger.info("Deleted role %s", role_code)
        return MutationResult.success("Role deleted", role_code=role_code)

    async def _find_role(self, role_code: str, application_code: str | None) -> RoleResult | None:
        return await find_role(
            self._catalog,
            self._roles,
            role_code,
            application_code or self._default_application_code,
        )

    async def _is_ancestor(self, role_id: str, start: RoleResult) -> bool:
        """Return True if role_id appears on start's parent chain (start included)."""
        seen: set[str] = set()
        current: RoleResult | None = start
        while current is not None and current.id not in seen:
            if current.id == role_id:
                return True
            seen.add(current.id)
            if current.parent_role_id is None:
                return False
            current = await self._roles.get_by_id(current.parent_role_id)
        return False

    async def _lookup_permission(
        self, permission_code: str, application_code: str | None
    ) -> tuple[PermissionResult | None, MutationResult | None]:
        parsed = PermissionCode.try_parse(
            permission_code, application_code or self._default_application_code
        )
        if parsed is None:
            return None, MutationResult.invalid(
                f"Invalid permission code: '{permission_code}'", permission=permission_code
            )
        permission = await self._catalog.get_permission(
            parsed.application, parsed.resource_type, parsed.action
        )
        if permission is None:
            return None, MutationResult.not_found(
                f"Permission '{parsed.code}' not found", permission=parsed.code
            )
        return permission, None

    async def _commit_and_invalidate(self) -> None:
        await self._uow.commit()
        await self._invalidator.invalidate_all()


def _role_not_found(role_code: str) -> MutationResult:
    return MutationResult.not_found(f"Role '{role_code}' not found", role_code=role_code)
