"""API route handlers."""

from src.api.openapi.routes import health, uploads, videos

__all__ = [
    "health",
    "uploads",
    "videos",
]
