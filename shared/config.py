"""
Shared configuration management for the response cache layer.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheConfig(BaseSettings):
    """Environment-driven defaults for cache middleware instances."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Logging
    log_level: str = Field(default="info")

    # Storage
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_key_prefix: str = Field(default="response_cache:")

    # Middleware defaults
    default_ttl_seconds: int = Field(default=0)
    response_status_code: int = Field(default=200)
    response_content_type: Optional[str] = Field(default=None)
    key_as_etag: bool = Field(default=False)
    disable_set: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_config() -> CacheConfig:
    """Get the process-wide cache configuration."""
    return CacheConfig()
