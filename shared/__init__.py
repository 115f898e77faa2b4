"""
Shared utilities for the response cache layer.

This package aggregates common building blocks consumed by the cache
service:

- config: Cache defaults via pydantic-settings
- logging: Structured logging with request/cache-key correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from service packages into shared/.
"""
