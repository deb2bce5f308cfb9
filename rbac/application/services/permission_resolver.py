"""Permission resolution: allow/deny decisions and effective permission/role sets.

A subject holds a permission when any of these sources grants it:

1. a role assigned to the subject directly;
2. a role assigned to a team the subject belongs to;
3. (instance checks only) a direct grant on that resource instance;
4. (instance checks only) ownership of that resource instance.

Role grants may be scoped to one resource instance; scoped grants only count
when a check names exactly that instance and never show up in the unscoped
permission and role sets. Roles inherit the permissions of their parent
chain. Expired grants are ignored everywhere.

Resolution is read-only and never raises for a denied or malformed request:
every outcome is a PermissionCheckResult value.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from rbac.application.dtos.authorization import (
    EffectiveAccess,
    PermissionCheckResult,
    RoleGrant,
    RoleNode,
    SubjectRef,
)
from rbac.application.interfaces.repositories import IPermissionStore
from rbac.core.constants import (
    PERMISSION_CODE_SEP,
    REASON_NO_PERMISSIONS,
    REASON_NONE_MATCHED,
    REASON_PERMISSION_DENIED,
    REASON_SUBJECT_INACTIVE,
    REASON_SUBJECT_NOT_FOUND,
)
from rbac.domain.value_objects.permission_code import PermissionCode
from rbac.shared.utils.datetime import is_expired, utc_now

logger = logging.getLogger(__name__)


def invalid_code_reason(code: str) -> str:
    """Denial reason for a permission code that cannot be parsed."""
    return f"Invalid permission code: '{code}'"


def filter_permissions_by_application(
    permissions: Iterable[str], application_code: str | None
) -> frozenset[str]:
    """Keep permission codes whose application segment equals application_code."""
    if not application_code:
        return frozenset(permissions)
    prefix = f"{application_code}{PERMISSION_CODE_SEP}"
    return frozenset(p for p in permissions if p.startswith(prefix))


class PermissionResolver:
    """Resolves permissions and roles of a subject from an IPermissionStore.

    Permission codes with fewer than three segments are qualified with
    default_application_code before matching.
    """

    def __init__(
        self,
        store: IPermissionStore,
        default_application_code: str | None = None,
    ) -> None:
        self.store = store
        self.default_application_code = default_application_code

    async def check_permission(
        self,
        subject_id: str,
        permission_code: str,
        resource_instance_id: str | None = None,
    ) -> PermissionCheckResult:
        """Decide whether the subject (external id) holds permission_code.

        Args:
            subject_id: Subject external id (provider-independent).
            permission_code: "app:resource:action" or "resource:action".
            resource_instance_id: Optional resource instance external id.

        Returns:
            PermissionCheckResult; reason is set only when denied.
        """
        subject = await self.store.get_subject_by_external_id(subject_id)
        denial = self._subject_denial(subject_id, subject)
        if denial is not None:
            return denial
        result = await self._check_for_subject(subject, permission_code, resource_instance_id or None)
        logger.debug(
            "Permission check subject=%s permission=%s instance=%s allowed=%s",
            subject_id,
            permission_code,
            resource_instance_id,
            result.allowed,
        )
        return result

    async def check_any_permission(
        self,
        subject_id: str,
        permission_codes: Sequence[str],
        resource_instance_id: str | None = None,
    ) -> PermissionCheckResult:
        """Allow on the first permission (in order) the subject holds."""
        if not permission_codes:
            return PermissionCheckResult.deny(REASON_NO_PERMISSIONS)
        subject = await self.store.get_subject_by_external_id(subject_id)
        denial = self._subject_denial(subject_id, subject)
        if denial is not None:
            return denial
        for code in permission_codes:
            result = await self._check_for_subject(subject, code, resource_instance_id or None)
            if result.allowed:
                return result
        return PermissionCheckResult.deny(REASON_NONE_MATCHED)

    async def get_permissions(
        self, subject_id: str, application_code: str | None = None
    ) -> frozenset[str]:
        """Return unscoped effective permission codes, optionally for one application.

        Unknown and inactive subjects have no permissions.
        """
        access = await self.get_effective_access(subject_id)
        return filter_permissions_by_application(access.permissions, application_code)

    async def get_roles(
        self, subject_id: str, application_code: str | None = None
    ) -> frozenset[str]:
        """Return unscoped effective role codes (parent roles included).

        With application_code, global roles and roles of that application pass.
        """
        subject = await self.store.get_subject_by_external_id(subject_id)
        if subject is None or not subject.is_active:
            return frozenset()
        nodes = await self._unscoped_role_nodes(subject)
        return frozenset(
            node.code
            for node in nodes.values()
            if not application_code
            or node.application_code is None
            or node.application_code == application_code
        )

    async def get_effective_access(self, subject_id: str) -> EffectiveAccess:
        """Return the unfiltered unscoped permissions and roles with subject status."""
        subject = await self.store.get_subject_by_external_id(subject_id)
        if subject is None:
            return EffectiveAccess(subject_id=subject_id, subject_found=False, is_active=False)
        if not subject.is_active:
            return EffectiveAccess(subject_id=subject_id, subject_found=True, is_active=False)
        nodes = await self._unscoped_role_nodes(subject)
        permissions: set[str] = set()
        for node in nodes.values():
            permissions.update(node.permission_codes)
        return EffectiveAccess(
            subject_id=subject_id,
            subject_found=True,
            is_active=True,
            permissions=frozenset(permissions),
            roles=frozenset(node.code for node in nodes.values()),
        )

    def qualify(self, permission_code: str) -> PermissionCode | None:
        """Parse and qualify a permission code; None when malformed."""
        return PermissionCode.try_parse(permission_code, self.default_application_code)

    @staticmethod
    def _subject_denial(
        subject_id: str, subject: SubjectRef | None
    ) -> PermissionCheckResult | None:
        if subject is None:
            logger.debug("Subject not found: %s", subject_id)
            return PermissionCheckResult.deny(REASON_SUBJECT_NOT_FOUND)
        if not subject.is_active:
            logger.debug("Subject is inactive: %s", subject_id)
            return PermissionCheckResult.deny(REASON_SUBJECT_INACTIVE)
        return None

    async def _check_for_subject(
        self,
        subject: SubjectRef,
        permission_code: str,
        resource_instance_id: str | None,
    ) -> PermissionCheckResult:
        permission = self.qualify(permission_code)
        if permission is None:
            return PermissionCheckResult.deny(invalid_code_reason(permission_code))

        now = utc_now()
        role_ids = await self._active_role_ids(subject, resource_instance_id, now)
        nodes = await self._expand_role_chain(role_ids)
        if any(permission.code in node.permission_codes for node in nodes.values()):
            return PermissionCheckResult.allow()

        if resource_instance_id is not None:
            grants = await self.store.list_instance_grants(subject.id, resource_instance_id)
            if any(
                grant.permission_code == permission.code and not is_expired(grant.expires_at, now)
                for grant in grants
            ):
                return PermissionCheckResult.allow()
            # Ownership allows every action on the instance's own resource type.
            if await self.store.is_resource_owner(
                subject.id,
                resource_instance_id,
                permission.application,
                permission.resource_type,
            ):
                return PermissionCheckResult.allow()

        return PermissionCheckResult.deny(REASON_PERMISSION_DENIED)

    async def _unscoped_role_nodes(self, subject: SubjectRef) -> dict[str, RoleNode]:
        role_ids = await self._active_role_ids(subject, None, utc_now())
        return await self._expand_role_chain(role_ids)

    async def _active_role_ids(
        self,
        subject: SubjectRef,
        resource_instance_id: str | None,
        now: datetime,
    ) -> set[str]:
        """Role ids granted directly or via teams: unexpired, unscoped or scoped to the instance."""
        grants: list[RoleGrant] = []
        grants.extend(await self.store.list_subject_role_grants(subject.id, resource_instance_id))
        grants.extend(await self.store.list_team_role_grants(subject.id, resource_instance_id))
        return {
            grant.role_id
            for grant in grants
            if not is_expired(grant.expires_at, now)
            and (
                grant.resource_instance_id is None
                or (
                    resource_instance_id is not None
                    and grant.resource_instance_id == resource_instance_id
                )
            )
        }

    async def _expand_role_chain(self, role_ids: Iterable[str]) -> dict[str, RoleNode]:
        """Load roles and all their ancestors, one store call per chain level.

        Each role id is requested at most once, so a cyclic parent chain ends.
        """
        nodes: dict[str, RoleNode] = {}
        requested: set[str] = set()
        frontier = set(role_ids)
        while frontier:
            requested |= frontier
            fetched = await self.store.get_roles_by_ids(frontier)
            nodes.update(fetched)
            frontier = {
                node.parent_role_id
                for node in fetched.values()
                if node.parent_role_id and node.parent_role_id not in requested
            }
        return nodes
