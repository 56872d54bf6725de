"""Maps exceptions to the JSON error envelope."""

from collections.abc import Callable
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DomainException,
    ForbiddenException,
    InvalidIdentifierException,
    PayloadTooLargeException,
    UnauthenticatedException,
    UnsupportedMediaTypeException,
    UploadPipelineException,
    VideoNotFoundException,
)
from src.domain.models.asset import UploadStep

logger = get_logger(__name__)


class APIError(Exception):
    """An error raised by route code with an explicit code and status."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ErrorMapping:
    """How one client-facing exception type is rendered."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: Callable[[Any], str] = str,
        details: Callable[[Any], dict[str, Any]] = lambda _: {},
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


# Checked in order, so subclasses must come before their bases
CLIENT_ERRORS: list[tuple[type[DomainException], ErrorMapping]] = [
    (
        InvalidIdentifierException,
        ErrorMapping(status.HTTP_400_BAD_REQUEST, "INVALID_IDENTIFIER"),
    ),
    (
        UnauthenticatedException,
        ErrorMapping(
            status.HTTP_401_UNAUTHORIZED,
            "UNAUTHENTICATED",
            message=lambda e: e.reason,
        ),
    ),
    (
        ForbiddenException,
        ErrorMapping(
            status.HTTP_403_FORBIDDEN,
            "FORBIDDEN",
            message=lambda _: "You do not own this video",
            details=lambda e: {"video_id": e.video_id},
        ),
    ),
    (
        VideoNotFoundException,
        ErrorMapping(
            status.HTTP_404_NOT_FOUND,
            "VIDEO_NOT_FOUND",
            details=lambda e: {"video_id": e.video_id},
        ),
    ),
    (
        UnsupportedMediaTypeException,
        ErrorMapping(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            "UNSUPPORTED_MEDIA_TYPE",
            details=lambda e: {"media_type": e.media_type, "asset_kind": e.kind.value},
        ),
    ),
    (
        PayloadTooLargeException,
        ErrorMapping(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            "PAYLOAD_TOO_LARGE",
            details=lambda e: {"max_bytes": e.max_bytes},
        ),
    ),
]

# Clients only ever see these; the cause stays in the logs
PIPELINE_ERROR_CODES: dict[UploadStep, tuple[str, str]] = {
    UploadStep.STAGED: ("STAGING_FAILED", "Could not stage the upload"),
    UploadStep.CLASSIFIED: ("PROBE_FAILED", "Could not inspect the video"),
    UploadStep.TRANSCODED: ("TRANSCODE_FAILED", "Could not process the video"),
    UploadStep.STORED: ("STORAGE_FAILED", "Could not store the asset"),
    UploadStep.PERSISTED: ("PERSISTENCE_FAILED", "Could not update the video"),
}

INTERNAL_ERROR = ("INTERNAL_ERROR", "An unexpected error occurred")


def build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Render ``{"error": {code, message, details, request_id}}``."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": getattr(request.state, "request_id", "unknown"),
            }
        },
    )


def _handle_exception(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, APIError):
        logger.warning(f"API error: {exc.code}", extra={"details": exc.details})
        return build_error_response(
            request, exc.code, exc.message, exc.status_code, exc.details
        )

    for exc_type, mapping in CLIENT_ERRORS:
        if isinstance(exc, exc_type):
            logger.warning(
                f"Request rejected: {mapping.code}",
                extra={"error_code": mapping.code, "reason": str(exc)},
            )
            response = build_error_response(
                request,
                mapping.code,
                mapping.message(exc),
                mapping.status_code,
                mapping.details(exc),
            )
            if isinstance(exc, UnauthenticatedException):
                response.headers["WWW-Authenticate"] = "Bearer"
            return response

    if isinstance(exc, UploadPipelineException):
        code, message = PIPELINE_ERROR_CODES.get(exc.step, INTERNAL_ERROR)
        logger.error(
            f"Upload pipeline error at step {exc.step.value}",
            extra={"error_code": code, "step": exc.step.value, "reason": exc.reason},
        )
        return build_error_response(
            request,
            code,
            message,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"step": exc.step.value},
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return build_error_response(
            request, "DOMAIN_ERROR", str(exc), status.HTTP_400_BAD_REQUEST
        )

    logger.exception(f"Unexpected error: {exc}")
    code, message = INTERNAL_ERROR
    return build_error_response(
        request, code, message, status.HTTP_500_INTERNAL_SERVER_ERROR
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Turn any exception escaping the routes into an error envelope."""
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
