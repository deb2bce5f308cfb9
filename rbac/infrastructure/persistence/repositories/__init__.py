"""Persistence repositories. Re-exports for dependency injection."""

from rbac.infrastructure.persistence.repositories.assignment_repo import AssignmentRepository
from rbac.infrastructure.persistence.repositories.base import BaseRepository
from rbac.infrastructure.persistence.repositories.catalog_repo import CatalogRepository
from rbac.infrastructure.persistence.repositories.permission_store import SqlPermissionStore
from rbac.infrastructure.persistence.repositories.role_repo import RoleRepository
from rbac.infrastructure.persistence.repositories.subject_repo import SubjectRepository
from rbac.infrastructure.persistence.repositories.team_repo import TeamRepository

__all__ = [
    "AssignmentRepository",
    "BaseRepository",
    "CatalogRepository",
    "RoleRepository",
    "SqlPermissionStore",
    "SubjectRepository",
    "TeamRepository",
]
