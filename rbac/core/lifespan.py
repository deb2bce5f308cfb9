"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Wires infrastructure only:
database tables, the resolution cache backend, engine dispose.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rbac.core.config import Settings, get_settings
from rbac.infrastructure.cache import (
    CacheService,
    MemoryCacheService,
    ResolutionCache,
)
from rbac.infrastructure.persistence import database

logger = logging.getLogger(__name__)


def build_cache_backend(settings: Settings) -> MemoryCacheService | CacheService:
    """Return the cache backend selected by settings.cache_backend (not yet connected)."""
    if settings.cache_backend == "redis":
        return CacheService(settings=settings)
    return MemoryCacheService(max_entries=settings.cache_max_entries)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    app.state.cache is a ResolutionCache, or None when caching is disabled.
    """
    settings = get_settings()

    # ---- Startup ----
    if settings.database_create_tables:
        await database.create_tables()

    backend = None
    if settings.cache_enabled:
        backend = build_cache_backend(settings)
        await backend.connect()
        app.state.cache = ResolutionCache(backend, ttl_seconds=settings.cache_ttl_permissions)
        logger.info(
            "Resolution cache enabled (backend=%s, ttl=%ss)",
            settings.cache_backend,
            settings.cache_ttl_permissions,
        )
    else:
        app.state.cache = None
        logger.info("Resolution cache disabled")

    yield

    # ---- Shutdown ----
    if backend is not None:
        await backend.disconnect()
        logger.info("Cache disconnected")
    app.state.cache = None

    await database.dispose_engine()
    logger.info("Database engine disposed")
