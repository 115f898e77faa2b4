"""
Per-middleware cache options.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from starlette.requests import Request

from shared.config import CacheConfig, get_config
from .adapters import StorageAdapter

# Status code of a response served from the cache
DEFAULT_CACHED_RESPONSE_STATUS_CODE = 200
# Content-Type of a response served from the cache when none is known
DEFAULT_CACHED_RESPONSE_CONTENT_TYPE = "application/json"

KeyFunc = Callable[[Request], Union[str, Awaitable[str]]]


class CacheOptions(BaseModel):
    """Immutable configuration of one cache middleware instance.

    A ``ttl_seconds`` of zero turns the middleware into a pass-through.
    ``key_func`` takes precedence over the static ``key``; when it raises,
    the request is aborted without reaching the wrapped app.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ttl_seconds: int = 0
    key: str = ""
    key_func: Optional[KeyFunc] = None
    adapter: Optional[StorageAdapter] = None
    disable_set: bool = False
    response_status_code: int = DEFAULT_CACHED_RESPONSE_STATUS_CODE
    response_content_type: Optional[str] = None
    key_as_etag: bool = False
    headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds != 0

    @classmethod
    def from_config(cls, config: Optional[CacheConfig] = None, **overrides: Any) -> "CacheOptions":
        """Build options from environment defaults, letting callers override."""
        if config is None:
            config = get_config()
        values: Dict[str, Any] = {
            "ttl_seconds": config.default_ttl_seconds,
            "response_status_code": config.response_status_code,
            "response_content_type": config.response_content_type,
            "key_as_etag": config.key_as_etag,
            "disable_set": config.disable_set,
        }
        values.update(overrides)
        return cls(**values)
