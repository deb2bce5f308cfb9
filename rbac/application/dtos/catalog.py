"""DTOs for catalog, subject, team and role read-models (no dependency on ORM)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ApplicationResult:
    id: str
    code: str
    name: str


@dataclass(frozen=True)
class ResourceTypeResult:
    """Resource type within an application."""

    id: str
    application_id: str
    application_code: str
    code: str
    supports_instances: bool


@dataclass(frozen=True)
class PermissionResult:
    """Catalog permission (resource type + action) with its wire code."""

    id: str
    resource_type_id: str
    action_id: str
    code: str


@dataclass(frozen=True)
class ResourceInstanceResult:
    id: str
    resource_type_id: str
    external_id: str
    owner_subject_id: str | None


@dataclass(frozen=True)
class SubjectResult:
    """Subject read-model."""

    id: str
    provider: str
    external_id: str
    subject_type: str
    email: str | None
    display_name: str | None
    is_active: bool


@dataclass(frozen=True)
class TeamResult:
    id: str
    code: str
    name: str
    is_active: bool


@dataclass(frozen=True)
class RoleResult:
    """Role read-model. application_code is None for global roles."""

    id: str
    code: str
    name: str
    application_id: str | None
    application_code: str | None
    parent_role_id: str | None
    is_system: bool
    description: str | None = None
