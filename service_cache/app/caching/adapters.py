"""
Storage adapters for the response cache.

Every backend satisfies :class:`StorageAdapter`: three coroutines, ``get``,
``set`` and ``clear``. Backends signal transport or serialization failures
by raising; they never decide what a failure means for the request.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.config import CacheConfig, get_config
from shared.errors import StorageAdapterError


@runtime_checkable
class StorageAdapter(Protocol):
    """Capability set required from any cache backend."""

    async def get(self, key: str) -> Tuple[bool, str]:
        """Return ``(found, payload)``; expired entries count as not found."""
        ...

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        """Store ``payload`` under ``key`` for ``ttl_seconds``, overwriting."""
        ...

    async def clear(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload and the instant it stops being served."""

    payload: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class MemoryAdapter:
    """In-process store with lazy expiry.

    Expired entries stay in memory until they are overwritten or cleared;
    lookups never mutate the store.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Tuple[bool, str]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return False, ""
        return True, entry.payload

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        entry = CacheEntry(payload=payload, expires_at=self._clock() + ttl_seconds)
        with self._lock:
            self._entries[key] = entry

    async def clear(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisAdapter:
    """Redis-backed store using server-side expiry."""

    def __init__(self, client: redis.Redis, key_prefix: str = "response_cache:"):
        self._redis = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, redis_url: str, key_prefix: str = "response_cache:") -> "RedisAdapter":
        """Build an adapter around a lazily connecting client."""
        client = redis.from_url(redis_url, encoding_errors="surrogateescape")
        return cls(client, key_prefix=key_prefix)

    @classmethod
    def from_config(cls, config: Optional[CacheConfig] = None) -> "RedisAdapter":
        """Build an adapter from ``CACHE_REDIS_URL`` and ``CACHE_REDIS_KEY_PREFIX``."""
        if config is None:
            config = get_config()
        return cls.from_url(config.redis_url, key_prefix=config.redis_key_prefix)

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Tuple[bool, str]:
        try:
            cached_data: Optional[bytes] = await self._redis.get(self._make_key(key))
        except RedisError as exc:
            raise StorageAdapterError("redis", f"get failed: {exc}", {"key": key}) from exc

        if cached_data is None:
            return False, ""
        if isinstance(cached_data, bytes):
            cached_data = cached_data.decode("utf-8", "surrogateescape")
        return True, cached_data

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        redis_key = self._make_key(key)
        try:
            if ttl_seconds <= 0:
                # Redis rejects non-positive expiry; an already-expired
                # entry is the same as no entry.
                await self._redis.delete(redis_key)
                return
            await self._redis.set(redis_key, payload, ex=ttl_seconds)
        except RedisError as exc:
            raise StorageAdapterError("redis", f"set failed: {exc}", {"key": key}) from exc

    async def clear(self, key: str) -> None:
        try:
            await self._redis.delete(self._make_key(key))
        except RedisError as exc:
            raise StorageAdapterError("redis", f"clear failed: {exc}", {"key": key}) from exc

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._redis.aclose()
