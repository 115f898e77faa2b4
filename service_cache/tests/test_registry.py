"""
Unit tests for the default adapter registry.
"""

import threading
from unittest.mock import MagicMock

from service_cache.app.caching.adapters import MemoryAdapter
from service_cache.app.caching.registry import (
    DefaultAdapterRegistry,
    default_adapter_registry,
    get_default_adapter,
)


class TestDefaultAdapterRegistry:
    """Test cases for DefaultAdapterRegistry."""

    def test_default_factory_builds_memory_adapter(self):
        """Without a factory the default store is in-memory."""
        registry = DefaultAdapterRegistry()

        assert isinstance(registry.get_or_create(), MemoryAdapter)

    def test_get_or_create_is_idempotent(self):
        """The factory runs once and the same instance is reused."""
        factory = MagicMock(side_effect=lambda: MemoryAdapter())
        registry = DefaultAdapterRegistry(factory=factory)

        first = registry.get_or_create()
        second = registry.get_or_create()

        assert first is second
        factory.assert_called_once_with()

    def test_concurrent_first_use_yields_single_instance(self):
        """Racing first requests observe one shared adapter."""
        created = []
        start = threading.Barrier(16)

        def factory():
            adapter = MemoryAdapter()
            created.append(adapter)
            return adapter

        registry = DefaultAdapterRegistry(factory=factory)
        results = []

        def resolve():
            start.wait()
            results.append(registry.get_or_create())

        threads = [threading.Thread(target=resolve) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert all(result is created[0] for result in results)

    def test_set_replaces_default(self):
        """An operator-provided adapter becomes the default."""
        registry = DefaultAdapterRegistry()
        custom = MemoryAdapter()

        registry.set(custom)

        assert registry.get_or_create() is custom

    def test_reset_builds_new_instance(self):
        """After reset the next resolution constructs a fresh adapter."""
        registry = DefaultAdapterRegistry()
        first = registry.get_or_create()

        registry.reset()

        assert registry.get_or_create() is not first

    def test_module_level_default(self):
        """get_default_adapter resolves through the process-wide registry."""
        assert get_default_adapter() is default_adapter_registry.get_or_create()
