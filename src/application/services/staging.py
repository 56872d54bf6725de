"""Copies uploaded parts to local temporary storage."""

import asyncio
from pathlib import Path

from src.application.dtos.upload import StagedAsset, UploadSource
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import PayloadTooLargeException, StagingException


class TempFileStager:
    """Streams an upload to disk in fixed-size chunks, enforcing a size cap.

    The cap is checked against bytes actually read, so a client that lies
    about Content-Length is still stopped once it crosses the limit.
    """

    def __init__(self, chunk_size: int = 1024 * 1024) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._chunk_size = chunk_size
        self._logger = get_logger(__name__)

    @timed
    async def stage(
        self,
        source: UploadSource,
        destination: Path,
        max_bytes: int,
        content_type: str,
    ) -> StagedAsset:
        """Copy ``source`` into ``destination``.

        Args:
            source: Uploaded part to read.
            destination: File to create; must not exist yet.
            max_bytes: Largest accepted size.
            content_type: Validated media type of the part.

        Returns:
            The staged asset.

        Raises:
            PayloadTooLargeException: If more than ``max_bytes`` are read.
            StagingException: If the local file cannot be written.
        """
        loop = asyncio.get_running_loop()
        written = 0

        try:
            with destination.open("xb") as out:
                while chunk := await source.read(self._chunk_size):
                    written += len(chunk)
                    if written > max_bytes:
                        raise PayloadTooLargeException(max_bytes)
                    await loop.run_in_executor(None, out.write, chunk)
        except OSError as e:
            destination.unlink(missing_ok=True)
            raise StagingException(str(e)) from e
        except BaseException:
            destination.unlink(missing_ok=True)
            raise

        self._logger.debug(
            "Staged upload",
            extra={"path": str(destination), "size_bytes": written},
        )
        return StagedAsset(
            path=destination, size_bytes=written, content_type=content_type
        )
