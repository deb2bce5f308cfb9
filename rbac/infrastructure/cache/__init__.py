"""Cache: resolution cache over memory or Redis backends.

Backend selection happens in rbac.core.lifespan from settings.cache_backend;
key format is in keys.py (DRY).
"""

from rbac.infrastructure.cache.cache_protocol import CacheProtocol
from rbac.infrastructure.cache.keys import access_key, access_pattern
from rbac.infrastructure.cache.memory_cache import MemoryCacheService
from rbac.infrastructure.cache.redis_cache import CacheService
from rbac.infrastructure.cache.resolution_cache import ResolutionCache

__all__ = [
    "CacheProtocol",
    "CacheService",
    "MemoryCacheService",
    "ResolutionCache",
    "access_key",
    "access_pattern",
]
