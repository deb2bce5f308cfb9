"""In-process cache backend with per-entry TTL.

Drop-in replacement for the Redis CacheService when the service runs as a
single process. Values are stored JSON-encoded so callers get the same
copy semantics as with Redis.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import threading
from collections import OrderedDict
from time import monotonic
from typing import Any

logger = logging.getLogger(__name__)


class MemoryCacheService:
    """Thread-safe TTL cache (same interface as CacheService).

    Entries expire on a monotonic clock. When max_entries is exceeded the
    least recently written entry is evicted.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._data: OrderedDict[str, tuple[float, str]] = OrderedDict()

    async def connect(self) -> None:
        """No-op; present for parity with CacheService."""
        logger.info("Memory cache ready (max_entries=%s)", self.max_entries)

    async def disconnect(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._data.clear()

    def is_available(self) -> bool:
        return True

    async def get(self, key: str) -> Any | None:
        now = monotonic()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                logger.debug("Cache MISS: %s", key)
                return None
            expires_at, raw = item
            if expires_at <= now:
                del self._data[key]
                logger.debug("Cache EXPIRED: %s", key)
                return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        serialized = json.dumps(value)
        expires_at = monotonic() + ttl
        with self._lock:
            self._data[key] = (expires_at, serialized)
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        return True

    async def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._data.pop(key, None) is not None
        if removed:
            logger.debug("Cache DELETE: %s", key)
        return removed

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob pattern (same syntax as Redis SCAN MATCH)."""
        with self._lock:
            matched = [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]
            for key in matched:
                del self._data[key]
        if matched:
            logger.info("Cache INVALIDATE: %s (%s keys)", pattern, len(matched))
        return len(matched)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
