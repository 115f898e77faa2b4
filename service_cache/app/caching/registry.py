"""
Process-wide default storage adapter.

Middleware instances configured without an adapter share one store, created
on first use. Creation is guarded so concurrent first requests observe the
same instance.
"""

import threading
from typing import Callable, Optional

from shared.logging import get_logger
from .adapters import MemoryAdapter, StorageAdapter


class DefaultAdapterRegistry:
    """Lazily populated slot holding the default adapter."""

    def __init__(self, factory: Callable[[], StorageAdapter] = MemoryAdapter):
        self._factory = factory
        self._adapter: Optional[StorageAdapter] = None
        self._lock = threading.Lock()
        self.logger = get_logger("cache.registry")

    def get_or_create(self) -> StorageAdapter:
        """Return the default adapter, constructing it exactly once."""
        adapter = self._adapter
        if adapter is not None:
            return adapter

        with self._lock:
            if self._adapter is None:
                self._adapter = self._factory()
                self.logger.info(
                    "Default cache adapter initialized",
                    adapter=type(self._adapter).__name__,
                )
            return self._adapter

    def set(self, adapter: StorageAdapter) -> None:
        """Replace the default adapter for subsequent resolutions."""
        with self._lock:
            self._adapter = adapter

    def reset(self) -> None:
        """Forget the current default; the next resolution builds a new one."""
        with self._lock:
            self._adapter = None


default_adapter_registry = DefaultAdapterRegistry()


def get_default_adapter() -> StorageAdapter:
    """Get the process-wide default adapter."""
    return default_adapter_registry.get_or_create()
