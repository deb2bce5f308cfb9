"""Authorization service: permission checks fronted by the resolution cache."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from rbac.application.dtos.authorization import EffectiveAccess, PermissionCheckResult
from rbac.application.interfaces.services import IPermissionResolver, IResolutionCache
from rbac.application.services.permission_resolver import (
    filter_permissions_by_application,
    invalid_code_reason,
)
from rbac.core.constants import (
    REASON_NO_PERMISSIONS,
    REASON_NONE_MATCHED,
    REASON_PERMISSION_DENIED,
)
from rbac.domain.exceptions import AuthorizationException
from rbac.domain.value_objects.permission_code import PermissionCode

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Centralized permission checking; uses the resolution cache when available.

    Only unscoped, unfiltered reads use the cache. Calls with a resource
    instance id or an application filter go straight to the resolver.
    Unknown or inactive subjects are never cached, so activating a subject
    takes effect without waiting for a TTL.
    """

    def __init__(
        self,
        resolver: IPermissionResolver,
        cache: IResolutionCache | None = None,
        default_application_code: str | None = None,
    ) -> None:
        self.resolver = resolver
        self.cache = cache
        self.default_application_code = default_application_code

    async def check_permission(
        self,
        subject_id: str,
        permission_code: str,
        resource_instance_id: str | None = None,
    ) -> PermissionCheckResult:
        if resource_instance_id or self.cache is None:
            return await self.resolver.check_permission(
                subject_id, permission_code, resource_instance_id
            )
        permission = PermissionCode.try_parse(permission_code, self.default_application_code)
        if permission is None:
            return PermissionCheckResult.deny(invalid_code_reason(permission_code))
        permissions, denial = await self._unscoped_permissions(subject_id)
        if denial is not None:
            return PermissionCheckResult.deny(denial)
        if permission.code in permissions:
            return PermissionCheckResult.allow()
        return PermissionCheckResult.deny(REASON_PERMISSION_DENIED)

    async def check_any_permission(
        self,
        subject_id: str,
        permission_codes: Sequence[str],
        resource_instance_id: str | None = None,
    ) -> PermissionCheckResult:
        if resource_instance_id or self.cache is None:
            return await self.resolver.check_any_permission(
                subject_id, permission_codes, resource_instance_id
            )
        if not permission_codes:
            return PermissionCheckResult.deny(REASON_NO_PERMISSIONS)
        permissions, denial = await self._unscoped_permissions(subject_id)
        if denial is not None:
            return PermissionCheckResult.deny(denial)
        for code in permission_codes:
            permission = PermissionCode.try_parse(code, self.default_application_code)
            if permission is not None and permission.code in permissions:
                return PermissionCheckResult.allow()
        return PermissionCheckResult.deny(REASON_NONE_MATCHED)

    async def get_permissions(
        self, subject_id: str, application_code: str | None = None
    ) -> frozenset[str]:
        """Return unscoped effective permissions; application filter bypasses the cache."""
        if application_code or self.cache is None:
            return await self.resolver.get_permissions(subject_id, application_code)
        permissions, _ = await self._unscoped_permissions(subject_id)
        return filter_permissions_by_application(permissions, application_code)

    async def get_roles(
        self, subject_id: str, application_code: str | None = None
    ) -> frozenset[str]:
        """Return unscoped effective roles; application filter bypasses the cache."""
        if application_code or self.cache is None:
            return await self.resolver.get_roles(subject_id, application_code)
        cached = await self.cache.get(subject_id)
        if cached is not None:
            return cached.roles
        access = await self._load(subject_id)
        return access.roles

    async def require_permission(
        self,
        subject_id: str,
        permission_code: str,
        resource_instance_id: str | None = None,
    ) -> None:
        """Raise AuthorizationException if the subject lacks the permission."""
        result = await self.check_permission(subject_id, permission_code, resource_instance_id)
        if not result.allowed:
            raise AuthorizationException(permission=permission_code, reason=result.reason)

    async def invalidate_subject(self, subject_external_id: str) -> None:
        """Drop cached access for one subject."""
        if self.cache is not None:
            await self.cache.invalidate(subject_external_id)

    async def invalidate_subjects(self, subject_external_ids: Iterable[str]) -> None:
        """Drop cached access for several subjects (team fan-out)."""
        if self.cache is not None:
            await self.cache.invalidate_many(subject_external_ids)

    async def invalidate_all(self) -> None:
        """Drop all cached access (role graph changed)."""
        if self.cache is not None:
            await self.cache.invalidate_all()

    async def _unscoped_permissions(self, subject_id: str) -> tuple[frozenset[str], str | None]:
        """Return (permissions, denial reason) from cache or a fresh resolution."""
        cached = await self.cache.get(subject_id)
        if cached is not None:
            return cached.permissions, None
        access = await self._load(subject_id)
        return access.permissions, access.denial_reason

    async def _load(self, subject_id: str) -> EffectiveAccess:
        access = await self.resolver.get_effective_access(subject_id)
        if access.denial_reason is None:
            await self.cache.set(subject_id, access.permissions, access.roles)
        else:
            logger.debug("Not caching access for %s: %s", subject_id, access.denial_reason)
        return access
