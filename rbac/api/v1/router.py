"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from rbac.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from rbac.api.v1.endpoints import check, health, resources, roles, subjects, teams

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(check.router, prefix="/check", tags=["check"])
api_router.include_router(subjects.router, prefix="/subjects", tags=["subjects"])
api_router.include_router(teams.router, prefix="/teams", tags=["teams"])
api_router.include_router(resources.router, prefix="/resources", tags=["resources"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
