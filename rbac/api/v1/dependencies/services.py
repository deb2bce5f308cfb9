"""Service dependencies (composition root).

Builds application services from infrastructure implementations; routes
depend only on these, never on repositories directly. One session per
request is shared by every service, and mutation services commit it
before invalidating the cache.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rbac.application.services.assignment_service import AssignmentService
from rbac.application.services.authorization_service import AuthorizationService
from rbac.application.services.permission_resolver import PermissionResolver
from rbac.application.services.role_service import RoleService
from rbac.core.config import get_settings
from rbac.infrastructure.persistence.database import get_db
from rbac.infrastructure.persistence.repositories import (
    AssignmentRepository,
    CatalogRepository,
    RoleRepository,
    SqlPermissionStore,
    SubjectRepository,
    TeamRepository,
)


async def get_authorization_service(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthorizationService:
    """Build AuthorizationService with SQL-backed resolver and optional cache.

    The cache is set in app lifespan (app.state.cache); when caching is
    disabled every check hits the database.
    """
    settings = get_settings()
    resolver = PermissionResolver(
        SqlPermissionStore(db), default_application_code=settings.default_application_code
    )
    return AuthorizationService(
        resolver=resolver,
        cache=getattr(request.app.state, "cache", None),
        default_application_code=settings.default_application_code,
    )


async def get_assignment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> AssignmentService:
    settings = get_settings()
    return AssignmentService(
        uow=db,
        subjects=SubjectRepository(db),
        roles=RoleRepository(db),
        teams=TeamRepository(db),
        catalog=CatalogRepository(db),
        assignments=AssignmentRepository(db),
        invalidator=auth_svc,
        default_application_code=settings.default_application_code,
    )


async def get_role_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> RoleService:
    settings = get_settings()
    return RoleService(
        uow=db,
        roles=RoleRepository(db),
        catalog=CatalogRepository(db),
        invalidator=auth_svc,
        default_application_code=settings.default_application_code,
    )
