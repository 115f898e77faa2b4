"""
Response Cache Service package.

Caches HTTP responses in front of an ASGI request pipeline:
- Key derivation: static key or per-request key function
- Lookup: fresh entries are served without running the route
- Capture: misses are mirrored to the client and stored with a TTL

Structure:
- app.caching.adapters: storage adapter contract, memory and Redis stores.
- app.caching.registry: process-wide default adapter.
- app.caching.options: per-middleware configuration.
- app.caching.middleware: the ASGI middleware and its factory.
- app.caching.capture: response capture for misses.
"""
