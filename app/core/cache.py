# app/core/cache.py
import fnmatch
import json
import logging
import math
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

import redis

logger = logging.getLogger(__name__)

# remaining-TTL sentinel for absent or expired keys (same value Redis uses)
KEY_MISSING = -2

# backend failures that must never break the primary operation
CACHE_ERRORS = (redis.exceptions.RedisError, OSError)


class MemoryCacheBackend:
    """Process-local store of key -> (json payload, absolute expiry)"""

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._items: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def get_raw(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            payload, expires_at = item
            if expires_at <= self._clock():
                return None
            return payload

    def set_raw(self, key: str, payload: str, ttl: int) -> None:
        with self._lock:
            self._items[key] = (payload, self._clock() + ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._items.pop(key, None) is not None

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            matched = [k for k in self._items if fnmatch.fnmatchcase(k, pattern)]
            for key in matched:
                del self._items[key]
            return len(matched)

    def get_ttl(self, key: str) -> int:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return KEY_MISSING
            remaining = item[1] - self._clock()
            if remaining <= 0:
                return KEY_MISSING
            return math.ceil(remaining)

    def exists(self, key: str) -> bool:
        return self.get_raw(key) is not None

    def flush(self) -> None:
        with self._lock:
            self._items.clear()

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, expires_at) in self._items.items() if expires_at <= now]
            for key in expired:
                del self._items[key]
            return len(expired)

    def ping(self) -> bool:
        return True

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        with self._lock:
            expired = sum(1 for _, expires_at in self._items.values() if expires_at <= now)
            return {"totalItems": len(self._items), "expiredItems": expired}


class RedisCacheBackend:
    """redis-py backed store; Redis handles expiry itself"""

    name = "redis"

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(redis.from_url(url, decode_responses=True, socket_timeout=2))

    def get_raw(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def set_raw(self, key: str, payload: str, ttl: int) -> None:
        self.client.setex(key, ttl, payload)

    def delete(self, key: str) -> bool:
        return bool(self.client.delete(key))

    def delete_pattern(self, pattern: str) -> int:
        keys = list(self.client.scan_iter(match=pattern))
        if not keys:
            return 0
        return int(self.client.delete(*keys))

    def get_ttl(self, key: str) -> int:
        ttl = int(self.client.ttl(key))
        # -1 means "no expiry"; every key written here has one
        return ttl if ttl >= 0 else KEY_MISSING

    def exists(self, key: str) -> bool:
        return bool(self.client.exists(key))

    def flush(self) -> None:
        self.client.flushdb()

    def purge_expired(self) -> int:
        return 0

    def ping(self) -> bool:
        return bool(self.client.ping())

    def stats(self) -> Dict[str, Any]:
        return {"totalItems": int(self.client.dbsize()), "expiredItems": 0}


class CacheManager:
    """
    Best-effort "fetch or compute" cache in front of the repositories.

    Values are stored as JSON so a hit returns exactly what the miss
    returned. Backend failures are logged and treated as misses; errors
    raised by the compute function itself always propagate.
    """

    def __init__(self, backend, default_ttl: int = 600):
        self.backend = backend
        self.default_ttl = default_ttl

    @staticmethod
    def generate_key(prefix: str, *parts: Any) -> str:
        return ":".join([prefix, *(str(p) for p in parts)])

    def get_or_set(self, key: str, compute_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        ttl = ttl or self.default_ttl
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache HIT for key: %s", key)
            return cached

        logger.debug("Cache MISS for key: %s", key)
        value = compute_fn()
        self.set(key, value, ttl)
        return value

    def get(self, key: str) -> Any:
        try:
            payload = self.backend.get_raw(key)
        except CACHE_ERRORS as exc:
            logger.warning("Cache get failed for key %s: %s", key, exc)
            return None
        if payload is None:
            return None
        return json.loads(payload)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ttl = ttl or self.default_ttl
        try:
            self.backend.set_raw(key, json.dumps(value, default=str), ttl)
        except CACHE_ERRORS as exc:
            logger.warning("Cache set failed for key %s: %s", key, exc)
            return False
        logger.debug("Cached data for key: %s (TTL: %ss)", key, ttl)
        return True

    def delete(self, key: str) -> bool:
        try:
            return self.backend.delete(key)
        except CACHE_ERRORS as exc:
            logger.warning("Cache delete failed for key %s: %s", key, exc)
            return False

    def delete_pattern(self, pattern: str) -> int:
        try:
            return self.backend.delete_pattern(pattern)
        except CACHE_ERRORS as exc:
            logger.warning("Cache pattern delete failed for %s: %s", pattern, exc)
            return 0

    def exists(self, key: str) -> bool:
        try:
            return self.backend.exists(key)
        except CACHE_ERRORS as exc:
            logger.warning("Cache exists check failed for key %s: %s", key, exc)
            return False

    def get_ttl(self, key: str) -> int:
        try:
            return self.backend.get_ttl(key)
        except CACHE_ERRORS as exc:
            logger.warning("Cache TTL lookup failed for key %s: %s", key, exc)
            return KEY_MISSING

    def flush(self) -> bool:
        try:
            self.backend.flush()
        except CACHE_ERRORS as exc:
            logger.warning("Cache flush failed: %s", exc)
            return False
        logger.info("Cache flushed")
        return True

    def purge_expired(self) -> int:
        try:
            removed = self.backend.purge_expired()
        except CACHE_ERRORS as exc:
            logger.warning("Cache sweep failed: %s", exc)
            return 0
        if removed:
            logger.info("Cleaned %s expired cache items", removed)
        return removed

    def ping(self) -> bool:
        try:
            return self.backend.ping()
        except CACHE_ERRORS as exc:
            logger.warning("Cache ping failed: %s", exc)
            return False

    def stats(self) -> Dict[str, Any]:
        try:
            data = self.backend.stats()
        except CACHE_ERRORS as exc:
            logger.warning("Cache stats failed: %s", exc)
            data = {"totalItems": None, "expiredItems": None}
        data["backend"] = self.backend.name
        return data

    # invalidation helpers

    def invalidate_project_cache(self, project_id: int) -> None:
        removed = self.delete_pattern(f"project:{project_id}:*")
        removed += self.delete_pattern("projects:*")
        logger.info("Invalidated cache for project %s (%s keys)", project_id, removed)

    def invalidate_task_cache(self, task_id: int, project_id: Optional[int] = None) -> None:
        removed = self.delete_pattern(f"task:{task_id}:*")
        removed += self.delete_pattern("tasks:*")
        if project_id:
            removed += self.delete_pattern(f"project:{project_id}:tasks:*")
        logger.info("Invalidated cache for task %s (%s keys)", task_id, removed)

    def invalidate_github_cache(self, project_id: int, username: Optional[str] = None) -> None:
        if username:
            removed = self.delete_pattern(f"github:{project_id}:{username}:*")
        else:
            removed = self.delete_pattern(f"github:{project_id}:*")
        logger.info(
            "Invalidated GitHub cache for project %s%s (%s keys)",
            project_id, f" and user {username}" if username else "", removed,
        )


def build_cache(backend_name: str, redis_url: str, default_ttl: int) -> CacheManager:
    if backend_name == "redis":
        backend = RedisCacheBackend.from_url(redis_url)
    else:
        backend = MemoryCacheBackend()
    logger.info("Cache backend: %s (default TTL %ss)", backend.name, default_ttl)
    return CacheManager(backend, default_ttl=default_ttl)
