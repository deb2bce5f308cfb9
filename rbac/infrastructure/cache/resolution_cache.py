"""Per-subject resolution cache over a pluggable cache backend.

Holds exactly the unscoped, unfiltered view of a subject: its permission
codes and role codes. Instance checks and application-filtered reads never
go through this cache.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rbac.application.dtos.authorization import CachedAccess
from rbac.infrastructure.cache.cache_protocol import CacheProtocol
from rbac.infrastructure.cache.keys import access_key, access_pattern

logger = logging.getLogger(__name__)


class ResolutionCache:
    """TTL cache of resolved permissions and roles keyed by subject external id."""

    def __init__(self, backend: CacheProtocol, ttl_seconds: int = 300) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.backend = backend
        self.ttl_seconds = ttl_seconds

    async def get(self, subject_id: str) -> CachedAccess | None:
        """Return cached access, or None on miss, expiry or unreadable entry."""
        if not subject_id or not self.backend.is_available():
            return None
        key = access_key(subject_id)
        value = await self.backend.get(key)
        if value is None:
            return None
        try:
            return CachedAccess(
                permissions=frozenset(value["permissions"]),
                roles=frozenset(value["roles"]),
            )
        except (KeyError, TypeError):
            logger.warning("Discarding malformed cache entry %s", key)
            await self.backend.delete(key)
            return None

    async def set(
        self, subject_id: str, permissions: Iterable[str], roles: Iterable[str]
    ) -> None:
        if not subject_id or not self.backend.is_available():
            return
        await self.backend.set(
            access_key(subject_id),
            {"permissions": sorted(permissions), "roles": sorted(roles)},
            ttl=self.ttl_seconds,
        )

    async def invalidate(self, subject_id: str) -> None:
        if not subject_id or not self.backend.is_available():
            return
        await self.backend.delete(access_key(subject_id))

    async def invalidate_many(self, subject_ids: Iterable[str]) -> None:
        for subject_id in set(subject_ids):
            await self.invalidate(subject_id)

    async def invalidate_all(self) -> None:
        if not self.backend.is_available():
            return
        await self.backend.delete_pattern(access_pattern())
