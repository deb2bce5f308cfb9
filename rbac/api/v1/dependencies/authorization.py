"""Authorization gate: declarative route requirements checked per request.

A route states what the caller needs (one permission, any of several, or a
role) and the gate asks the AuthorizationService. Decisions are not cached
here; the service's resolution cache already covers unscoped checks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from rbac.api.v1.dependencies.auth import get_current_subject_id
from rbac.api.v1.dependencies.services import get_authorization_service
from rbac.application.dtos.authorization import PermissionCheckResult
from rbac.application.services.authorization_service import AuthorizationService
from rbac.domain.exceptions import AuthorizationException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionRequirement:
    """The caller must hold permission, optionally on the instance named by resource_id_param."""

    permission: str
    resource_id_param: str | None = None


@dataclass(frozen=True)
class AnyPermissionRequirement:
    """The caller must hold at least one of permissions."""

    permissions: tuple[str, ...]
    resource_id_param: str | None = None


@dataclass(frozen=True)
class RoleRequirement:
    """The caller must hold role (case-insensitive, unscoped roles only)."""

    role: str


Requirement = PermissionRequirement | AnyPermissionRequirement | RoleRequirement


def resolve_resource_id(request: Request, param: str | None) -> str | None:
    """Read a resource instance id from path params, then query params."""
    if not param:
        return None
    value = request.path_params.get(param) or request.query_params.get(param)
    return str(value) if value else None


class AuthorizationGate:
    """Evaluates route requirements against the authorization service."""

    def __init__(self, service: AuthorizationService) -> None:
        self.service = service

    async def authorize(
        self,
        subject_id: str,
        requirement: Requirement,
        resource_id: str | None = None,
    ) -> PermissionCheckResult:
        if isinstance(requirement, PermissionRequirement):
            return await self.service.check_permission(
                subject_id, requirement.permission, resource_id
            )
        if isinstance(requirement, AnyPermissionRequirement):
            return await self.service.check_any_permission(
                subject_id, list(requirement.permissions), resource_id
            )
        roles = await self.service.get_roles(subject_id)
        wanted = requirement.role.casefold()
        if any(role.casefold() == wanted for role in roles):
            return PermissionCheckResult.allow()
        return PermissionCheckResult.deny(f"Role '{requirement.role}' required")

    async def enforce(self, subject_id: str, requirement: Requirement, request: Request) -> None:
        """Raise AuthorizationException (403) unless the requirement is met."""
        resource_id = None
        if not isinstance(requirement, RoleRequirement):
            resource_id = resolve_resource_id(request, requirement.resource_id_param)
        result = await self.authorize(subject_id, requirement, resource_id)
        if result.allowed:
            return
        logger.info(
            "Access denied for %s on %s %s: %s",
            subject_id,
            request.method,
            request.url.path,
            result.reason,
        )
        raise AuthorizationException(permission=_describe(requirement), reason=result.reason)


def _describe(requirement: Requirement) -> str:
    if isinstance(requirement, PermissionRequirement):
        return requirement.permission
    if isinstance(requirement, AnyPermissionRequirement):
        return " | ".join(requirement.permissions)
    return f"role:{requirement.role}"


def _gate_dependency(requirement: Requirement):
    async def _require(
        request: Request,
        subject_id: Annotated[str, Depends(get_current_subject_id)],
        auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> str:
        await AuthorizationGate(auth_svc).enforce(subject_id, requirement, request)
        return subject_id

    return _require


def require_permission(permission: str, resource_id_param: str | None = None):
    """Dependency factory: require JWT auth and permission; returns the caller's subject id."""
    return _gate_dependency(PermissionRequirement(permission, resource_id_param))


def require_any_permission(*permissions: str, resource_id_param: str | None = None):
    """Dependency factory: require JWT auth and at least one of permissions."""
    return _gate_dependency(AnyPermissionRequirement(tuple(permissions), resource_id_param))


def require_role(role: str):
    """Dependency factory: require JWT auth and role."""
    return _gate_dependency(RoleRequirement(role))
