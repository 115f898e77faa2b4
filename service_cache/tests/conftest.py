"""
Shared fixtures for cache service tests.
"""

from typing import List, Tuple

import pytest

from service_cache.app.caching.adapters import MemoryAdapter
from service_cache.app.caching.registry import DefaultAdapterRegistry
from shared.metrics import MetricsCollector


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingAdapter(MemoryAdapter):
    """Memory adapter that records every call it receives."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.get_calls: List[str] = []
        self.set_calls: List[Tuple[str, str, int]] = []
        self.clear_calls: List[str] = []

    async def get(self, key: str):
        self.get_calls.append(key)
        return await super().get(key)

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        self.set_calls.append((key, payload, ttl_seconds))
        await super().set(key, payload, ttl_seconds)

    async def clear(self, key: str) -> None:
        self.clear_calls.append(key)
        await super().clear(key)


class FailingAdapter:
    """Adapter whose every operation raises."""

    def __init__(self, message: str = "backend unavailable"):
        self.message = message
        self.set_calls: List[Tuple[str, str, int]] = []

    async def get(self, key: str):
        raise ConnectionError(self.message)

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        self.set_calls.append((key, payload, ttl_seconds))
        raise ConnectionError(self.message)

    async def clear(self, key: str) -> None:
        raise ConnectionError(self.message)


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def adapter():
    """Create a recording in-memory adapter."""
    return RecordingAdapter()


@pytest.fixture
def registry():
    """Create an isolated default-adapter registry."""
    return DefaultAdapterRegistry(factory=RecordingAdapter)


@pytest.fixture
def metrics():
    """Create a metrics collector with a private registry."""
    return MetricsCollector("cache")


@pytest.fixture
def failing_adapter():
    """Create an adapter whose backend is unavailable."""
    return FailingAdapter("redis down")


@pytest.fixture
def clocked_adapter(clock):
    """Create a recording adapter driven by the fake clock."""
    return RecordingAdapter(clock=clock)
