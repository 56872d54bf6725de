"""Request logging and request ID propagation."""

import logging
import re
import time
import uuid
from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.commons.telemetry.logger import correlation_id_var, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied IDs end up in every log line, so only accept plain tokens
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

QUIET_PATH_PREFIXES = ("/health",)


def resolve_request_id(header_value: str | None) -> str:
    """Reuse a well-formed caller ID, otherwise mint a UUID."""
    if header_value and _REQUEST_ID_PATTERN.fullmatch(header_value):
        return header_value
    return str(uuid.uuid4())


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID and logs its outcome.

    The ID is the correlation ID of every log line the request produces and
    is echoed back in ``X-Request-ID``. Health probes log at DEBUG, server
    errors at ERROR.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = correlation_id_var.set(request_id)

        quiet = request.url.path.startswith(QUIET_PATH_PREFIXES)
        start_time = time.perf_counter()
        logger.log(
            logging.DEBUG if quiet else logging.INFO,
            "Request started",
            extra={
                "method": request.method,
                "path": request.url.path,
                "content_length": request.headers.get("content-length"),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        try:
            response: Response = await call_next(request)

            if response.status_code >= 500:
                level = logging.ERROR
            elif quiet:
                level = logging.DEBUG
            else:
                level = logging.INFO
            logger.log(
                level,
                "Request completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            correlation_id_var.reset(token)
