"""API middleware components."""

from src.api.middleware.error_handler import APIError, error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware
from src.api.middleware.request_size import RequestSizeLimitMiddleware

__all__ = [
    "APIError",
    "LoggingMiddleware",
    "RequestSizeLimitMiddleware",
    "error_handler_middleware",
]
