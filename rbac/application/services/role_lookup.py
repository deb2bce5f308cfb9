"""Role lookup shared by assignment and role-graph services."""

from __future__ import annotations

from rbac.application.dtos.catalog import RoleResult
from rbac.application.interfaces.repositories import ICatalogRepository, IRoleRepository


async def find_role(
    catalog: ICatalogRepository,
    roles: IRoleRepository,
    role_code: str,
    application_code: str | None,
) -> RoleResult | None:
    """Return the role with role_code in application_code, else the global role with that code."""
    if application_code:
        application = await catalog.get_application_by_code(application_code)
        if application is not None:
            role = await roles.get_by_code(role_code, application.id)
            if role is not None:
                return role
    return await roles.get_by_code(role_code, None)
