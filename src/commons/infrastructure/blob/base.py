"""Blob storage capability shared by the local and object-store backends."""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import BinaryIO


@dataclass
class StoredBlob:
    """What the backend reports after an asset was written."""

    bucket: str
    key: str
    size_bytes: int
    content_type: str
    etag: str = ""
    stored_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageError(Exception):
    """A backend rejected or failed a blob operation."""

    def __init__(self, operation: str, bucket: str, key: str, reason: str) -> None:
        self.operation = operation
        self.bucket = bucket
        self.key = key
        self.reason = reason
        super().__init__(f"{operation} {bucket}/{key} failed: {reason}")


def rewind(data: BinaryIO | bytes) -> tuple[BinaryIO, int]:
    """Wrap ``data`` as a stream positioned at 0 and report its length."""
    if isinstance(data, bytes):
        return io.BytesIO(data), len(data)
    length = data.seek(0, io.SEEK_END)
    data.seek(0)
    return data, length


class BlobStorageBase(ABC):
    """Where uploaded thumbnails and videos end up.

    Keys are opaque and chosen by the caller; a backend never invents or
    rewrites them. Implementations:
    - Local filesystem, served through the app's static mount
    - MinIO / AWS S3
    """

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        key: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        """Write an asset under ``bucket/key``, replacing any existing one.

        Streams are always read from offset 0.

        Raises:
            BlobStorageError: If the backend refuses the write.
        """

    @abstractmethod
    async def delete(self, bucket: str, key: str) -> bool:
        """Remove an asset; False if there was nothing to remove."""

    @abstractmethod
    async def exists(self, bucket: str, key: str) -> bool:
        """Check whether an asset is stored under ``bucket/key``."""

    @abstractmethod
    def public_url(self, bucket: str, key: str) -> str:
        """URL clients will fetch the asset from.

        Depends only on backend configuration, bucket and key; nothing is
        looked up.
        """

    @abstractmethod
    async def create_bucket(self, bucket: str) -> bool:
        """Create a bucket; False if it was already there."""

    @abstractmethod
    async def bucket_exists(self, bucket: str) -> bool:
        """Check whether a bucket exists."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Probe the backend and time the round trip."""
