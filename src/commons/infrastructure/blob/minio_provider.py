"""MinIO / S3 backend for asset storage."""

import asyncio
import time
from collections.abc import Callable
from typing import BinaryIO, TypeVar

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from src.commons.infrastructure.blob.base import (
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
    StoredBlob,
    rewind,
)
from src.commons.telemetry import get_logger

T = TypeVar("T")

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


class MinioBlobStorage(BlobStorageBase):
    """Stores assets as objects, one bucket per asset kind.

    The SDK blocks, so each call is pushed to the default executor. SDK and
    transport errors surface as ``BlobStorageError``.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        """Initialize the MinIO client.

        Args:
            endpoint: Host and port of the object store ("localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Talk HTTPS to the endpoint.
            region: Region name, needed by AWS S3.
            public_base_url: Prefix for asset URLs; path-style
                ``{scheme}://{endpoint}`` when unset.
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        default_base = f"{'https' if secure else 'http'}://{endpoint}"
        self._public_base_url = (public_base_url or default_base).rstrip("/")
        self._logger = get_logger(__name__)

    async def _call(
        self,
        operation: str,
        bucket: str,
        key: str,
        fn: Callable[[], T],
    ) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn)
        except S3Error as e:
            reason = f"{e.code}: {e.message}"
            raise BlobStorageError(operation, bucket, key, reason) from e
        except HTTPError as e:
            raise BlobStorageError(operation, bucket, key, str(e)) from e

    async def upload(
        self,
        bucket: str,
        key: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        """Put the object; the SDK switches to multipart for large videos."""
        stream, length = rewind(data)

        def _put() -> str:
            result = self._client.put_object(
                bucket_name=bucket,
                object_name=key,
                data=stream,
                length=length,
                content_type=content_type,
            )
            return result.etag or ""

        etag = await self._call("upload", bucket, key, _put)
        self._logger.debug(
            "Object stored",
            extra={"bucket": bucket, "key": key, "size_bytes": length},
        )
        return StoredBlob(
            bucket=bucket,
            key=key,
            size_bytes=length,
            content_type=content_type,
            etag=etag,
        )

    async def delete(self, bucket: str, key: str) -> bool:
        if not await self.exists(bucket, key):
            return False
        await self._call(
            "delete", bucket, key, lambda: self._client.remove_object(bucket, key)
        )
        return True

    async def exists(self, bucket: str, key: str) -> bool:
        def _stat() -> bool:
            try:
                self._client.stat_object(bucket, key)
            except S3Error as e:
                if e.code in MISSING_OBJECT_CODES:
                    return False
                raise
            return True

        return await self._call("stat", bucket, key, _stat)

    def public_url(self, bucket: str, key: str) -> str:
        """Path-style URL under the public base."""
        return f"{self._public_base_url}/{bucket}/{key}"

    async def create_bucket(self, bucket: str) -> bool:
        def _create() -> bool:
            if self._client.bucket_exists(bucket):
                return False
            self._client.make_bucket(bucket)
            return True

        return await self._call("create_bucket", bucket, "", _create)

    async def bucket_exists(self, bucket: str) -> bool:
        return await self._call(
            "bucket_exists", bucket, "", lambda: self._client.bucket_exists(bucket)
        )

    async def health_check(self) -> HealthStatus:
        """Listing buckets proves both reachability and credentials."""
        start = time.perf_counter()
        try:
            await self._call("list_buckets", "*", "", self._client.list_buckets)
        except BlobStorageError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"Object store unreachable: {e.reason}",
                details={"endpoint": self._endpoint},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            details={"endpoint": self._endpoint},
        )
