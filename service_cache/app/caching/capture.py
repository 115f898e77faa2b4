"""
Response capture for cache misses.

:class:`ResponseCapture` sits between the wrapped app and the real ASGI
``send``. Every body chunk is forwarded unchanged and mirrored into a
buffer; once the final chunk has gone out, the buffer is persisted if the
response is still eligible.
"""

from typing import Any, Callable, Dict, List, Optional

from starlette.datastructures import Headers
from starlette.types import Message, Receive, Send

from shared.errors import CachePersistError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .adapters import StorageAdapter
from .options import CacheOptions

# Request-state keys shared with the middleware and downstream handlers
STATE_OPTIONS = "cache_options"
STATE_KEY = "cache_key"
STATE_ABORTED = "cache_aborted"
STATE_ERRORS = "cache_errors"
STATE_SET_ERROR = "cache_set_error"
STATE_LOOKUP_ERROR = "cache_lookup_error"

PAYLOAD_ENCODING = "utf-8"
PAYLOAD_ERRORS = "surrogateescape"


def record_error(state: Dict[str, Any], error: Exception) -> None:
    """Attach a non-fatal cache error to request-scoped state."""
    errors: List[Exception] = state.setdefault(STATE_ERRORS, [])
    errors.append(error)


def is_error_status(status_code: int) -> bool:
    return status_code > 399


class ResponseCapture:
    """Forwarding decorator around ``send`` that buffers the body."""

    def __init__(
        self,
        key: str,
        options: CacheOptions,
        adapter: StorageAdapter,
        state: Dict[str, Any],
        send: Send,
        receive: Receive,
        *,
        on_content_type: Optional[Callable[[str], None]] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.key = key
        self.options = options
        self.adapter = adapter
        self.state = state
        self.status_code = 200
        self.headers = Headers()
        self.buffer = bytearray()
        self.completed = False
        self.persisted = False
        self._send = send
        self._receive = receive
        self._on_content_type = on_content_type
        self.metrics = metrics
        self.logger = get_logger("cache.capture")

    @property
    def aborted(self) -> bool:
        return bool(self.state.get(STATE_ABORTED, False))

    def is_eligible(self) -> bool:
        """Whether the captured response may be written to the store."""
        return (
            not is_error_status(self.status_code)
            and not self.options.disable_set
            and not self.aborted
        )

    async def receive(self) -> Message:
        message = await self._receive()
        # Servers report a disconnect once the response is complete too
        if message["type"] == "http.disconnect" and not self.completed:
            self.state[STATE_ABORTED] = True
        return message

    async def send(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            self.status_code = message["status"]
            self.headers = Headers(raw=message.get("headers", []))
            await self._send(message)
            return

        if message_type != "http.response.body":
            await self._send(message)
            return

        self.buffer.extend(message.get("body", b""))
        if not message.get("more_body", False):
            self.completed = True
        await self._send(message)

        if self.completed:
            await self.persist()

    async def persist(self) -> None:
        """Store the buffered body under the request's key when eligible."""
        if self.persisted:
            return
        self.persisted = True

        if not self.is_eligible():
            self.logger.debug(
                "Captured response not cached",
                key=self.key,
                status_code=self.status_code,
                disable_set=self.options.disable_set,
                aborted=self.aborted,
            )
            self._record_write("skipped")
            return

        content_type = self.options.response_content_type or self.headers.get("content-type")
        if content_type and self._on_content_type is not None:
            self._on_content_type(content_type)

        payload = self.buffer.decode(PAYLOAD_ENCODING, PAYLOAD_ERRORS)
        try:
            await self.adapter.set(self.key, payload, self.options.ttl_seconds)
        except Exception as exc:
            error = CachePersistError(self.key, str(exc), {"status_code": self.status_code})
            self.state[STATE_SET_ERROR] = error
            record_error(self.state, error)
            self.logger.warning(
                "Cache persist error",
                key=self.key,
                error=error.to_response().model_dump(),
            )
            self._record_write("error")
            return

        self.logger.debug(
            "Cached response",
            key=self.key,
            ttl=self.options.ttl_seconds,
            size=len(self.buffer),
        )
        self._record_write("stored", len(self.buffer))

    def _record_write(self, result: str, size: Optional[int] = None) -> None:
        if not self.metrics:
            return

        try:
            self.metrics.record_write(result, size)
        except Exception as exc:  # pragma: no cover - metrics failures should never break a response
            self.logger.debug("Failed to record cache write metrics", error=str(exc))
