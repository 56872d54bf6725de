"""Infrastructure layer - external service implementations."""

from src.infrastructure.auth import IdentityServiceBase, JWTIdentityService
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.media import (
    FFmpegMediaTools,
    MediaToolError,
    MediaToolsBase,
    StreamInfo,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Identity
    "IdentityServiceBase",
    "JWTIdentityService",
    # Media tools
    "MediaToolsBase",
    "MediaToolError",
    "StreamInfo",
    "FFmpegMediaTools",
]
