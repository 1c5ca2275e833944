"""
Caching utilities for frequently read reference data
(branch list, payment methods).

Values live in Redis when it is enabled and reachable, otherwise in a
process-local TTL store, the same hybrid split the rate limiter uses.
Every operation fails open: an outage turns into a cache miss, never
into a request error.
"""
import json
import logging
import time
from threading import Lock
from typing import Any, Optional

from .config import REDIS_ENABLED
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

BRANCHES_CACHE_KEY = "branches:active"
PAYMENT_METHODS_CACHE_KEY = "payments:methods"


class Cache:
    """Redis cache wrapper with automatic JSON serialization"""

    def __init__(self, use_redis: bool = True):
        self.use_redis = use_redis
        self.redis_client = None
        # Format: {key: (expires_at, serialized_value)}
        self._local: dict[str, tuple[float, str]] = {}
        self._lock = Lock()

    def _get_client(self):
        """Lazy load Redis client"""
        if not self.use_redis:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable, using process memory: {e}")
                self.use_redis = False
                return None
        return self.redis_client

    def _local_get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._local.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if time.monotonic() >= expires_at:
                del self._local[key]
                return None
            return value

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        try:
            value = client.get(key) if client else self._local_get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        if ttl <= 0:
            return False
        client = self._get_client()
        try:
            serialized = json.dumps(value, default=str)
            if client:
                client.setex(key, ttl, serialized)
            else:
                with self._lock:
                    self._local[key] = (time.monotonic() + ttl, serialized)
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        client = self._get_client()
        try:
            if client:
                client.delete(key)
            else:
                with self._lock:
                    self._local.pop(key, None)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False

    def clear_local(self):
        with self._lock:
            self._local.clear()


# Global cache instance
cache = Cache(use_redis=REDIS_ENABLED)


def invalidate_branches_cache() -> bool:
    """Drop the cached branch list after a branch is created or changed"""
    return cache.delete(BRANCHES_CACHE_KEY)
