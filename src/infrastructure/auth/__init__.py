"""Caller identity services."""

from src.infrastructure.auth.base import IdentityServiceBase
from src.infrastructure.auth.jwt_identity import JWTIdentityService

__all__ = [
    "IdentityServiceBase",
    "JWTIdentityService",
]
