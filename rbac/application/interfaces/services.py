"""Service interfaces (ports) for the application layer.

Protocols define contracts for caches and authorization services (DIP).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rbac.application.dtos.authorization import (
        CachedAccess,
        EffectiveAccess,
        PermissionCheckResult,
    )


# Per-subject resolution cache interface
class IResolutionCache(Protocol):
    """Per-subject TTL cache of the unscoped permission and role sets."""

    async def get(self, subject_id: str) -> CachedAccess | None:
        """Return cached access or None on miss. Never raises."""

    async def set(
        self, subject_id: str, permissions: Iterable[str], roles: Iterable[str]
    ) -> None:
        """Store access for subject with the configured TTL."""

    async def invalidate(self, subject_id: str) -> None:
        """Drop the entry for one subject."""

    async def invalidate_many(self, subject_ids: Iterable[str]) -> None:
        """Drop the entries for several subjects."""

    async def invalidate_all(self) -> None:
        """Drop every entry."""


# Permission resolver interface
class IPermissionResolver(Protocol):
    """Protocol for permission resolution (allow/deny and effective sets)."""

    async def check_permission(
        self,
        subject_id: str,
        permission_code: str,
        resource_instance_id: str | None = None,
    ) -> PermissionCheckResult:
        """Decide one permission for a subject."""

    async def check_any_permission(
        self,
        subject_id: str,
        permission_codes: Sequence[str],
        resource_instance_id: str | None = None,
    ) -> PermissionCheckResult:
        """Allow when any of the permissions is allowed."""

    async def get_permissions(
        self, subject_id: str, application_code: str | None = None
    ) -> frozenset[str]:
        """Return the unscoped effective permission codes."""

    async def get_roles(
        self, subject_id: str, application_code: str | None = None
    ) -> frozenset[str]:
        """Return the unscoped effective role codes."""

    async def get_effective_access(self, subject_id: str) -> EffectiveAccess:
        """Return unfiltered unscoped access plus subject status."""


# Invalidation hook used by mutation services
class IAccessInvalidator(Protocol):
    """Drops cached access after a mutation."""

    async def invalidate_subject(self, subject_external_id: str) -> None:
        """Drop cached access of one subject."""

    async def invalidate_subjects(self, subject_external_ids: Iterable[str]) -> None:
        """Drop cached access of several subjects."""

    async def invalidate_all(self) -> None:
        """Drop all cached access."""
