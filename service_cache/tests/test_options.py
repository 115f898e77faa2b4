"""
Unit tests for cache options and configuration.
"""

import pytest
from pydantic import ValidationError

from service_cache.app.caching.adapters import MemoryAdapter
from service_cache.app.caching.options import (
    DEFAULT_CACHED_RESPONSE_CONTENT_TYPE,
    DEFAULT_CACHED_RESPONSE_STATUS_CODE,
    CacheOptions,
)
from shared.config import CacheConfig, get_config


class TestCacheOptions:
    """Test cases for CacheOptions."""

    def test_defaults(self):
        options = CacheOptions()

        assert options.ttl_seconds == 0
        assert options.enabled is False
        assert options.key == ""
        assert options.key_func is None
        assert options.adapter is None
        assert options.disable_set is False
        assert options.response_status_code == DEFAULT_CACHED_RESPONSE_STATUS_CODE == 200
        assert options.response_content_type is None
        assert DEFAULT_CACHED_RESPONSE_CONTENT_TYPE == "application/json"
        assert options.key_as_etag is False
        assert options.headers == {}

    def test_enabled_for_non_zero_ttl(self):
        assert CacheOptions(ttl_seconds=60).enabled is True

    def test_options_are_immutable(self):
        """Options are shared read-only across requests."""
        options = CacheOptions(ttl_seconds=60, key="K")

        with pytest.raises(ValidationError):
            options.ttl_seconds = 0

    def test_accepts_adapter_and_key_func(self):
        adapter = MemoryAdapter()

        options = CacheOptions(ttl_seconds=60, adapter=adapter, key_func=lambda request: request.url.path)

        assert options.adapter is adapter
        assert callable(options.key_func)

    def test_rejects_non_adapter(self):
        """Objects lacking get/set/clear are refused."""
        with pytest.raises(ValidationError):
            CacheOptions(ttl_seconds=60, adapter=object())

    def test_from_config(self):
        config = CacheConfig(
            default_ttl_seconds=120,
            response_status_code=203,
            response_content_type="text/plain",
            key_as_etag=True,
            disable_set=True,
        )

        options = CacheOptions.from_config(config, key="K")

        assert options.ttl_seconds == 120
        assert options.response_status_code == 203
        assert options.response_content_type == "text/plain"
        assert options.key_as_etag is True
        assert options.disable_set is True
        assert options.key == "K"

    def test_from_config_overrides_win(self):
        config = CacheConfig(default_ttl_seconds=120)

        options = CacheOptions.from_config(config, ttl_seconds=5)

        assert options.ttl_seconds == 5

    def test_from_config_defaults_to_process_config(self, monkeypatch):
        monkeypatch.setenv("CACHE_DEFAULT_TTL_SECONDS", "45")
        get_config.cache_clear()
        try:
            options = CacheOptions.from_config(key="K")
        finally:
            get_config.cache_clear()

        assert options.ttl_seconds == 45
        assert options.key == "K"


class TestCacheConfig:
    """Test cases for CacheConfig."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CACHE_DEFAULT_TTL_SECONDS", "300")
        monkeypatch.setenv("CACHE_REDIS_KEY_PREFIX", "svc:")
        monkeypatch.setenv("CACHE_KEY_AS_ETAG", "true")

        config = CacheConfig()

        assert config.default_ttl_seconds == 300
        assert config.redis_key_prefix == "svc:"
        assert config.key_as_etag is True

    def test_defaults(self, monkeypatch):
        for name in ("CACHE_DEFAULT_TTL_SECONDS", "CACHE_RESPONSE_CONTENT_TYPE", "CACHE_DISABLE_SET"):
            monkeypatch.delenv(name, raising=False)

        config = CacheConfig(_env_file=None)

        assert config.default_ttl_seconds == 0
        assert config.response_status_code == 200
        assert config.response_content_type is None
        assert config.disable_set is False
