"""Caps request bodies per route while they are being received."""

from collections.abc import Mapping

from fastapi import status
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.api.middleware.error_handler import build_error_response
from src.commons.telemetry.logger import get_logger

logger = get_logger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RequestSizeLimitMiddleware:
    """Rejects bodies over the cap of the route they are sent to.

    Upload routes must declare a Content-Length (411 otherwise) and are
    refused up front when it is over their cap. Every body, declared or
    chunked, is also counted as it arrives; once the count passes the cap a
    413 is sent and the app downstream sees a client disconnect, so the
    multipart parser never spools more than the cap to disk.
    """

    def __init__(
        self,
        app: ASGIApp,
        route_limits: Mapping[str, int],
        default_max_bytes: int,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The wrapped ASGI app.
            route_limits: Path prefix to maximum body size. These routes
                also require a Content-Length.
            default_max_bytes: Cap for every other route.
        """
        self.app = app
        self.route_limits = dict(route_limits)
        self.default_max_bytes = default_max_bytes

    def limit_for(self, path: str) -> tuple[int, bool]:
        """Cap for ``path`` and whether a declared length is required."""
        for prefix, limit in self.route_limits.items():
            if path.startswith(prefix):
                return limit, True
        return self.default_max_bytes, False

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in BODY_METHODS:
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        limit, length_required = self.limit_for(path)
        declared = Headers(scope=scope).get("content-length")

        if declared is None and length_required:
            logger.warning("Upload without Content-Length", extra={"path": path})
            await self._reject(
                scope,
                receive,
                send,
                code="LENGTH_REQUIRED",
                message="Uploads must declare a Content-Length",
                status_code=status.HTTP_411_LENGTH_REQUIRED,
            )
            return

        if declared is not None and declared.isdigit() and int(declared) > limit:
            logger.warning(
                "Request body too large",
                extra={"content_length": int(declared), "max_body_bytes": limit},
            )
            await self._reject_too_large(scope, receive, send, limit)
            return

        received = 0
        rejected = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, rejected
            if rejected:
                return {"type": "http.disconnect"}
            message = await receive()
            if message["type"] != "http.request":
                return message
            received += len(message.get("body", b""))
            if received <= limit:
                return message

            rejected = True
            logger.warning(
                "Request body exceeded cap while streaming",
                extra={"received_bytes": received, "max_body_bytes": limit},
            )
            if not response_started:
                await self._reject_too_large(scope, receive, send, limit)
            return {"type": "http.disconnect"}

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if rejected:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        await self.app(scope, limited_receive, guarded_send)

    async def _reject_too_large(
        self, scope: Scope, receive: Receive, send: Send, limit: int
    ) -> None:
        await self._reject(
            scope,
            receive,
            send,
            code="PAYLOAD_TOO_LARGE",
            message=f"Request body exceeds the maximum size of {limit} bytes",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            details={"max_bytes": limit},
        )

    @staticmethod
    async def _reject(
        scope: Scope,
        receive: Receive,
        send: Send,
        code: str,
        message: str,
        status_code: int,
        details: dict[str, int] | None = None,
    ) -> None:
        response = build_error_response(
            request=Request(scope),
            code=code,
            message=message,
            status_code=status_code,
            details=details,
        )
        response.headers["Connection"] = "close"
        await response(scope, receive, send)
