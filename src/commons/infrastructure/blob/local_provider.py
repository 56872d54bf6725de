"""Local filesystem backend for asset storage."""

import asyncio
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import BinaryIO

from src.commons.infrastructure.blob.base import (
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
    StoredBlob,
    rewind,
)


class LocalBlobStorage(BlobStorageBase):
    """Stores assets as files under ``root/<bucket>/<key>``.

    Writes go to a hidden temporary file next to the target and are renamed
    into place, so a failed upload never leaves a partial asset behind.
    Content types are not recorded; the static mount derives them from the
    key's extension.
    """

    def __init__(
        self,
        root: Path,
        public_base_url: str,
        chunk_size: int = 1 << 20,
    ) -> None:
        """Initialize local storage.

        Args:
            root: Directory holding one sub-directory per bucket.
            public_base_url: URL the root directory is served under
                (e.g. "http://localhost:8091/assets").
            chunk_size: Copy buffer size.
        """
        self._root = root
        self._public_base_url = public_base_url.rstrip("/")
        self._chunk_size = chunk_size

    @property
    def root(self) -> Path:
        """Directory assets are stored under."""
        return self._root

    def _resolve(self, operation: str, bucket: str, key: str) -> Path:
        """Map a bucket/key pair to a file, refusing to escape the bucket."""
        bucket_dir = (self._root / bucket).resolve()
        target = (bucket_dir / key).resolve()
        if not target.is_relative_to(bucket_dir) or target == bucket_dir:
            raise BlobStorageError(operation, bucket, key, "key escapes the bucket")
        return target

    async def upload(
        self,
        bucket: str,
        key: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        target = self._resolve("upload", bucket, key)
        stream, _ = rewind(data)

        def _write() -> int:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as out:
                    shutil.copyfileobj(stream, out, self._chunk_size)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            return target.stat().st_size

        try:
            size = await asyncio.get_running_loop().run_in_executor(None, _write)
        except OSError as e:
            raise BlobStorageError("upload", bucket, key, str(e)) from e

        return StoredBlob(
            bucket=bucket,
            key=key,
            size_bytes=size,
            content_type=content_type,
        )

    async def delete(self, bucket: str, key: str) -> bool:
        target = self._resolve("delete", bucket, key)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        return True

    async def exists(self, bucket: str, key: str) -> bool:
        return self._resolve("stat", bucket, key).is_file()

    def public_url(self, bucket: str, key: str) -> str:
        """URL of the asset under the static mount."""
        return f"{self._public_base_url}/{bucket}/{key}"

    async def create_bucket(self, bucket: str) -> bool:
        bucket_dir = self._root / bucket
        if bucket_dir.is_dir():
            return False
        bucket_dir.mkdir(parents=True, exist_ok=True)
        return True

    async def bucket_exists(self, bucket: str) -> bool:
        return (self._root / bucket).is_dir()

    async def health_check(self) -> HealthStatus:
        """The root must exist and be writable."""
        start = time.perf_counter()
        healthy = self._root.is_dir() and os.access(self._root, os.W_OK)
        return HealthStatus(
            healthy=healthy,
            latency_ms=(time.perf_counter() - start) * 1000,
            message=None if healthy else f"Not writable: {self._root}",
            details={"root": str(self._root)},
        )
