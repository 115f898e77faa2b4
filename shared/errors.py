"""
Shared error handling for the response cache layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error payload used for diagnostics and logs."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class CacheLayerException(Exception):
    """Base exception for the cache layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class StorageAdapterError(CacheLayerException):
    """Transport or serialization failure inside a storage backend."""

    def __init__(self, backend: str, message: str = "Storage backend error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_ADAPTER_ERROR", f"{backend}: {message}", details)


class KeyDerivationError(CacheLayerException):
    """The configured key function failed for a request."""

    def __init__(self, message: str = "Cache key derivation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("KEY_DERIVATION_ERROR", message, details)


class CacheLookupError(CacheLayerException):
    """The adapter failed to answer a lookup."""

    def __init__(self, key: str, message: str = "Cache lookup failed", details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__("CACHE_LOOKUP_ERROR", message, {"key": key, **(details or {})})


class CachePersistError(CacheLayerException):
    """The adapter failed to store a captured response."""

    def __init__(self, key: str, message: str = "Cache persist failed", details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__("CACHE_PERSIST_ERROR", message, {"key": key, **(details or {})})
