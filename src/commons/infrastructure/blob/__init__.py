"""Blob storage abstractions and implementations."""

from src.commons.infrastructure.blob.base import (
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
    StoredBlob,
)
from src.commons.infrastructure.blob.local_provider import LocalBlobStorage
from src.commons.infrastructure.blob.minio_provider import MinioBlobStorage

__all__ = [
    # Base classes
    "BlobStorageBase",
    "BlobStorageError",
    "HealthStatus",
    "StoredBlob",
    # Implementations
    "LocalBlobStorage",
    "MinioBlobStorage",
]
