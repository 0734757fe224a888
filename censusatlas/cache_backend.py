"""
Census Atlas — Statistics cache.

Holds fetched ``StatsRecord``s between loads: ACS profile data changes once
a year, while a county load costs 51 Census requests.  Redis is used when
``REDIS_URL`` is set and answers a ping; otherwise a process-local TTL dict.

Cache trouble never fails a load.  Reads degrade to a miss and writes are
dropped, each with a warning.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, NamedTuple, Optional

import redis

from censusatlas import config

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "censusatlas"


class CacheBackend:
    """JSON values under namespaced keys.

    Subclasses implement ``_read`` / ``_write`` on raw strings and fully
    qualified keys.
    """

    backend: str = "none"

    def __init__(self, namespace: str = KEY_NAMESPACE) -> None:
        self.namespace = namespace

    def qualify(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write(self, key: str, value: str, ttl_seconds: Optional[int]) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        return self._read(self.qualify(key))

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self._write(self.qualify(key), value, ttl_seconds)

    def get_json(self, key: str) -> Optional[Any]:
        try:
            raw = self.get(key)
        except Exception as exc:
            logger.warning("%s cache read %s failed: %s", self.backend, key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("%s cache entry %s is not valid JSON; ignoring", self.backend, key)
            return None

    def set_json(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        try:
            self.set(key, json.dumps(value, separators=(",", ":")), ttl_seconds=ttl_seconds)
        except Exception as exc:
            logger.warning("%s cache write %s failed: %s", self.backend, key, exc)


class _Entry(NamedTuple):
    value: str
    expires_at: Optional[float]


class MemoryCacheBackend(CacheBackend):
    backend = "memory"

    def __init__(self, namespace: str = KEY_NAMESPACE) -> None:
        super().__init__(namespace)
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _read(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and time.time() > entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def _write(self, key: str, value: str, ttl_seconds: Optional[int]) -> None:
        now = time.time()
        expires_at = now + max(1, int(ttl_seconds)) if ttl_seconds else None
        with self._lock:
            # Only a handful of (year, level) keys exist; sweep on every write
            for stale in [k for k, e in self._entries.items()
                          if e.expires_at is not None and now > e.expires_at]:
                del self._entries[stale]
            self._entries[key] = _Entry(value, expires_at)


class RedisCacheBackend(CacheBackend):
    backend = "redis"

    def __init__(self, url: str, namespace: str = KEY_NAMESPACE) -> None:
        super().__init__(namespace)
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
        # Raises redis.RedisError when unreachable; the caller falls back
        self._client.ping()

    def _read(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def _write(self, key: str, value: str, ttl_seconds: Optional[int]) -> None:
        self._client.set(key, value, ex=max(1, int(ttl_seconds)) if ttl_seconds else None)


_backend: Optional[CacheBackend] = None
_backend_lock = threading.Lock()


def _build_backend() -> CacheBackend:
    if config.REDIS_URL:
        try:
            backend = RedisCacheBackend(config.REDIS_URL)
        except redis.RedisError as exc:
            logger.warning("Redis at REDIS_URL unavailable (%s); caching statistics in memory", exc)
        else:
            logger.info("Caching statistics in Redis")
            return backend
    return MemoryCacheBackend()


def get_cache_backend() -> CacheBackend:
    """Process-wide cache, chosen on first use."""
    global _backend
    with _backend_lock:
        if _backend is None:
            _backend = _build_backend()
        return _backend


def reset_cache_backend_for_tests() -> None:
    global _backend
    with _backend_lock:
        _backend = None
