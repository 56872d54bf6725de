"""Unit tests for TempFileStager."""

import io
from pathlib import Path

import pytest

from src.application.services.staging import TempFileStager
from src.domain.exceptions import PayloadTooLargeException, StagingException


class FakeUpload:
    """In-memory stand-in for an uploaded multipart part."""

    def __init__(self, data: bytes, content_type: str | None = "image/png") -> None:
        self.filename = "upload.bin"
        self.content_type = content_type
        self._buffer = io.BytesIO(data)
        self.read_sizes: list[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.read_sizes.append(size)
        return self._buffer.read(size)


class TestTempFileStager:
    """Tests for chunked staging with a size cap."""

    async def test_stages_all_bytes(self, tmp_path: Path):
        data = b"x" * 5000
        stager = TempFileStager(chunk_size=1024)

        staged = await stager.stage(
            FakeUpload(data), tmp_path / "upload.png", 10_000, "image/png"
        )

        assert staged.path == tmp_path / "upload.png"
        assert staged.size_bytes == 5000
        assert staged.content_type == "image/png"
        assert staged.path.read_bytes() == data

    async def test_reads_in_chunks(self, tmp_path: Path):
        source = FakeUpload(b"y" * 3000)
        stager = TempFileStager(chunk_size=1024)

        await stager.stage(source, tmp_path / "upload.png", 10_000, "image/png")

        assert set(source.read_sizes) == {1024}
        # Three data chunks and the final empty read
        assert len(source.read_sizes) == 4

    async def test_exactly_at_cap_is_accepted(self, tmp_path: Path):
        stager = TempFileStager(chunk_size=1024)

        staged = await stager.stage(
            FakeUpload(b"z" * 2048), tmp_path / "upload.png", 2048, "image/png"
        )

        assert staged.size_bytes == 2048

    async def test_over_cap_is_rejected_and_removed(self, tmp_path: Path):
        stager = TempFileStager(chunk_size=1024)
        destination = tmp_path / "upload.mp4"

        with pytest.raises(PayloadTooLargeException) as exc_info:
            await stager.stage(
                FakeUpload(b"z" * 2049), destination, 2048, "video/mp4"
            )

        assert exc_info.value.max_bytes == 2048
        assert not destination.exists()

    async def test_stops_reading_once_over_cap(self, tmp_path: Path):
        source = FakeUpload(b"z" * 100_000)
        stager = TempFileStager(chunk_size=1024)

        with pytest.raises(PayloadTooLargeException):
            await stager.stage(source, tmp_path / "upload.mp4", 2048, "video/mp4")

        assert len(source.read_sizes) == 3

    async def test_empty_upload(self, tmp_path: Path):
        stager = TempFileStager()

        staged = await stager.stage(
            FakeUpload(b""), tmp_path / "upload.png", 10, "image/png"
        )

        assert staged.size_bytes == 0
        assert staged.path.read_bytes() == b""

    async def test_existing_destination_is_a_staging_failure(self, tmp_path: Path):
        destination = tmp_path / "upload.png"
        destination.write_bytes(b"already here")
        stager = TempFileStager()

        with pytest.raises(StagingException):
            await stager.stage(FakeUpload(b"data"), destination, 100, "image/png")

    async def test_missing_directory_is_a_staging_failure(self, tmp_path: Path):
        stager = TempFileStager()

        with pytest.raises(StagingException) as exc_info:
            await stager.stage(
                FakeUpload(b"data"), tmp_path / "gone" / "upload.png", 100, "image/png"
            )

        assert exc_info.value.step.value == "staged"

    async def test_io_error_removes_partial_file(self, tmp_path: Path):
        class FailingUpload(FakeUpload):
            async def read(self, size: int = -1) -> bytes:
                if self.read_sizes:
                    raise OSError("No space left on device")
                return await super().read(size)

        stager = TempFileStager(chunk_size=1024)
        destination = tmp_path / "upload.png"

        with pytest.raises(StagingException) as exc_info:
            await stager.stage(
                FailingUpload(b"a" * 4096), destination, 10_000, "image/png"
            )

        assert "No space left" in exc_info.value.reason
        assert not destination.exists()

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            TempFileStager(chunk_size=0)
