"""
Response cache middleware.

Per HTTP request the middleware derives a cache key, asks the storage
adapter for a fresh entry and either answers from the cache without
calling the wrapped app, or lets the app run while a
:class:`~service_cache.app.caching.capture.ResponseCapture` records the
response for later requests.
"""

import inspect
from typing import Any, Callable, Dict, Optional

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared.errors import CacheLookupError, KeyDerivationError
from shared.logging import get_logger, reset_context, set_cache_key, set_request_id
from shared.metrics import MetricsCollector
from .adapters import StorageAdapter
from .capture import (
    PAYLOAD_ENCODING,
    PAYLOAD_ERRORS,
    STATE_ABORTED,
    STATE_KEY,
    STATE_LOOKUP_ERROR,
    STATE_OPTIONS,
    ResponseCapture,
    record_error,
)
from .options import (
    DEFAULT_CACHED_RESPONSE_CONTENT_TYPE,
    DEFAULT_CACHED_RESPONSE_STATUS_CODE,
    CacheOptions,
)
from .registry import DefaultAdapterRegistry, default_adapter_registry

# Status sent for a request aborted before anything was written
ABORTED_RESPONSE_STATUS_CODE = 200
REQUEST_ID_HEADER = "X-Request-ID"


def abort_caching(request: Request) -> None:
    """Mark the current request so its response is never stored."""
    request.state.cache_aborted = True


def replay_body(request: Request, receive: Receive) -> Receive:
    """Hand a body already read through ``request`` back to the wrapped app."""
    if not hasattr(request, "_body"):
        return receive

    body = request._body
    replayed = False

    async def wrapped_receive() -> Message:
        nonlocal replayed
        if replayed:
            return await receive()
        replayed = True
        return {"type": "http.request", "body": body, "more_body": False}

    return wrapped_receive


class ResponseCacheMiddleware:
    """ASGI middleware serving and capturing cached responses."""

    def __init__(
        self,
        app: ASGIApp,
        options: CacheOptions,
        *,
        registry: Optional[DefaultAdapterRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.app = app
        self.options = options
        self.registry = registry or default_adapter_registry
        self.metrics = metrics
        self.logger = get_logger("cache.middleware")
        self._adapter: Optional[StorageAdapter] = options.adapter
        self._captured_content_type: Optional[str] = None

    @property
    def adapter(self) -> StorageAdapter:
        """The configured adapter, else the process-wide default."""
        if self._adapter is None:
            self._adapter = self.registry.get_or_create()
        return self._adapter

    @property
    def content_type(self) -> str:
        """Content-Type announced on cache hits."""
        return (
            self.options.response_content_type
            or self._captured_content_type
            or DEFAULT_CACHED_RESPONSE_CONTENT_TYPE
        )

    def _remember_content_type(self, content_type: str) -> None:
        # First learned type wins
        if self.options.response_content_type is None and self._captured_content_type is None:
            self._captured_content_type = content_type

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state: Dict[str, Any] = scope.setdefault("state", {})
        state[STATE_OPTIONS] = self.options

        request = Request(scope, receive)
        tokens = [set_request_id(request.headers.get(REQUEST_ID_HEADER))]
        try:
            if not self.options.enabled:
                self._record("bypass")
                await self.app(scope, receive, send)
                return

            try:
                key = await self._resolve_key(request)
            except Exception as exc:
                error = KeyDerivationError(str(exc) or type(exc).__name__, {"path": request.url.path})
                state[STATE_ABORTED] = True
                record_error(state, error)
                self.logger.warning(
                    "Cache key derivation failed; aborting request",
                    path=request.url.path,
                    error=error.to_response().model_dump(),
                )
                self._record("key_error")
                await Response(status_code=ABORTED_RESPONSE_STATUS_CODE)(scope, receive, send)
                return

            state[STATE_KEY] = key
            tokens.append(set_cache_key(key))
            await self._serve(key, state, scope, replay_body(request, receive), send)
        finally:
            reset_context(*tokens)

    async def _serve(self, key: str, state: Dict[str, Any], scope: Scope, receive: Receive, send: Send) -> None:
        adapter = self.adapter
        found, payload = False, ""
        try:
            found, payload = await adapter.get(key)
        except Exception as exc:
            error = CacheLookupError(key, str(exc))
            state[STATE_LOOKUP_ERROR] = error
            record_error(state, error)
            self.logger.warning(
                "Cache lookup error; treating as miss",
                key=key,
                error=error.to_response().model_dump(),
            )
            self._record("lookup", "error")

        if found:
            self.logger.debug("Cache hit", key=key)
            self._record("lookup", "hit")
            await self._send_cached(key, payload, scope, receive, send)
            return

        self.logger.debug("Cache miss", key=key)
        if STATE_LOOKUP_ERROR not in state:
            self._record("lookup", "miss")

        capture = ResponseCapture(
            key,
            self.options,
            adapter,
            state,
            send,
            receive,
            on_content_type=self._remember_content_type,
            metrics=self.metrics,
        )
        await self.app(scope, capture.receive, capture.send)

    async def _resolve_key(self, request: Request) -> str:
        if self.options.key_func is None:
            return self.options.key

        key = self.options.key_func(request)
        if inspect.isawaitable(key):
            key = await key
        return key

    async def _send_cached(self, key: str, payload: str, scope: Scope, receive: Receive, send: Send) -> None:
        response = Response(
            content=payload.encode(PAYLOAD_ENCODING, PAYLOAD_ERRORS),
            status_code=self.options.response_status_code or DEFAULT_CACHED_RESPONSE_STATUS_CODE,
        )
        for name, value in self.options.headers.items():
            response.headers.append(name, value)
        if self.options.key_as_etag:
            response.headers.append("ETag", key)
        response.headers.append("Content-Type", self.content_type)
        await response(scope, receive, send)

    def _record(self, event: str, result: Optional[str] = None) -> None:
        if not self.metrics:
            return

        try:
            if event == "bypass":
                self.metrics.record_bypass()
            elif event == "key_error":
                self.metrics.record_key_error()
            elif event == "lookup" and result is not None:
                self.metrics.record_lookup(result)
        except Exception as exc:  # pragma: no cover - metrics failures should never break a request
            self.logger.debug("Failed to record cache metrics", error=str(exc))


def new_middleware(options: CacheOptions, **kwargs: Any) -> Callable[[ASGIApp], ResponseCacheMiddleware]:
    """Return a factory wrapping an ASGI app with a cache middleware.

    Useful for caching a single route::

        Route("/prices", endpoint=new_middleware(options)(request_response(prices)))
    """
    def wrap(app: ASGIApp) -> ResponseCacheMiddleware:
        return ResponseCacheMiddleware(app, options, **kwargs)

    return wrap
