"""Structured logging for impostor-py.

Configures structlog and provides ASGI middleware that tags every request with
a correlation id and, for room routes, the room code, so all log lines emitted
while serving a request can be tied back to it.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

_ROOM_PATH = re.compile(r"/rooms/(?P<code>[A-Za-z0-9]+)")
_HEALTH_PATHS = frozenset({"/health", "/ready", "/favicon.ico"})


def configure_logging(*, debug: bool = False, json_logs: bool = False) -> None:
    """Configure structlog for the application.

    Args:
        debug: Enable debug level logging.
        json_logs: Render JSON lines instead of colored console output.
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def room_code_from_path(path: str) -> str | None:
    """Extract the upper-cased room code from a room route, if any."""
    match = _ROOM_PATH.search(path)
    return match.group("code").upper() if match else None


class CorrelationIdMiddleware:
    """Bind a correlation id (and room code) to the structlog context.

    The id comes from the ``X-Correlation-ID`` or ``X-Request-ID`` header when
    present, otherwise a new UUID is generated. It is stored in the scope state
    for the error handlers and echoed back in the response headers.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = (
            headers.get(b"x-correlation-id", b"").decode()
            or headers.get(b"x-request-id", b"").decode()
            or str(uuid.uuid4())
        )
        scope.setdefault("state", {})["correlation_id"] = correlation_id

        path = scope.get("path", "")
        context: dict[str, Any] = {"correlation_id": correlation_id, "path": path}
        if scope["type"] == "http":
            context["method"] = scope.get("method", "")
        room_code = room_code_from_path(path)
        if room_code:
            context["room_code"] = room_code

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-correlation-id", correlation_id.encode()))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            structlog.contextvars.clear_contextvars()


class RequestLoggingMiddleware:
    """Log one line per HTTP request with status and duration.

    Every client heartbeats every few seconds, so successful heartbeats are
    logged at debug level. Health checks are not logged at all.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        exclude_paths: frozenset[str] = _HEALTH_PATHS,
        quiet_suffixes: tuple[str, ...] = ("/heartbeat",),
    ) -> None:
        self.app = app
        self.exclude_paths = exclude_paths
        self.quiet_suffixes = quiet_suffixes

    def level_for(self, path: str, status_code: int) -> str:
        """Log level for a finished request."""
        if status_code >= 500:
            return "error"
        if status_code >= 400:
            return "warning"
        return "debug" if path.endswith(self.quiet_suffixes) else "info"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "")
        if scope["type"] != "http" or path in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        logger = structlog.get_logger(__name__)
        started = time.perf_counter()
        status_code = 500

        async def capture_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        except Exception:
            logger.exception("Request failed with exception")
            raise
        finally:
            logger.log(
                getattr(logging, self.level_for(path, status_code).upper()),
                "Request completed",
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )


def get_middleware() -> list[Any]:
    """Logging middleware in the order it should be applied."""
    return [CorrelationIdMiddleware, RequestLoggingMiddleware]
