"""
Response caching package.

Provides the ASGI middleware that serves fresh responses from a storage
adapter and captures misses for later requests. Any object offering the
``get``/``set``/``clear`` coroutines of :class:`StorageAdapter` can back it;
without one, middleware instances share a process-wide in-memory store.
"""

from .adapters import CacheEntry, MemoryAdapter, RedisAdapter, StorageAdapter
from .capture import ResponseCapture
from .middleware import ResponseCacheMiddleware, abort_caching, new_middleware
from .options import (
    DEFAULT_CACHED_RESPONSE_CONTENT_TYPE,
    DEFAULT_CACHED_RESPONSE_STATUS_CODE,
    CacheOptions,
    KeyFunc,
)
from .registry import DefaultAdapterRegistry, default_adapter_registry, get_default_adapter

__all__ = [
    "CacheEntry",
    "CacheOptions",
    "DEFAULT_CACHED_RESPONSE_CONTENT_TYPE",
    "DEFAULT_CACHED_RESPONSE_STATUS_CODE",
    "DefaultAdapterRegistry",
    "KeyFunc",
    "MemoryAdapter",
    "RedisAdapter",
    "ResponseCacheMiddleware",
    "ResponseCapture",
    "StorageAdapter",
    "abort_caching",
    "default_adapter_registry",
    "get_default_adapter",
    "new_middleware",
]
