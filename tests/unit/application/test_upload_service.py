"""Unit tests for AssetUploadService."""

import io
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from src.application.services.upload import AssetUploadService
from src.application.services.videos import VideoService
from src.commons.infrastructure.blob.base import BlobStorageError, HealthStatus
from src.commons.infrastructure.blob.local_provider import LocalBlobStorage
from src.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
)
from src.commons.settings.models import Settings, UploadSettings
from src.domain.exceptions import (
    ForbiddenException,
    NoStreamsException,
    PayloadTooLargeException,
    PersistenceException,
    ProbeException,
    StorageException,
    TranscodeException,
    UnsupportedMediaTypeException,
    VideoNotFoundException,
)
from src.domain.models.asset import AspectRatio, AssetKind
from src.domain.models.video import Video
from src.domain.value_objects.video_id import VideoId
from src.infrastructure.media.base import MediaToolError, MediaToolsBase, StreamInfo

OWNER = "user-owner"
OTHER_USER = "user-other"
PUBLIC_BASE = "http://localhost:8091/assets"

# =============================================================================
# Fakes
# =============================================================================


class FakeUpload:
    """In-memory stand-in for an uploaded multipart part."""

    def __init__(self, data: bytes, content_type: str | None) -> None:
        self.filename = "upload"
        self.content_type = content_type
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class InMemoryDocumentDB(DocumentDBBase):
    """Dict-backed document store honouring the update match filter."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.update_calls = 0

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        self.collections.setdefault(collection, {})[document["id"]] = dict(document)
        return str(document["id"])

    async def find_by_id(
        self, collection: str, document_id: str
    ) -> dict[str, Any] | None:
        doc = self.collections.get(collection, {}).get(document_id)
        return dict(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        match: dict[str, Any] | None = None,
    ) -> bool:
        self.update_calls += 1
        doc = self.collections.get(collection, {}).get(document_id)
        if doc is None:
            return False
        if any(doc.get(k) != v for k, v in (match or {}).items()):
            return False
        doc.update(updates)
        return True

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.0)


class FakeMediaTools(MediaToolsBase):
    """Media tools that report fixed streams and prefix remuxed output."""

    REMUX_MARKER = b"faststart:"

    def __init__(self, streams: list[StreamInfo] | None = None) -> None:
        self.streams = (
            streams
            if streams is not None
            else [StreamInfo(0, "video", "h264", 1920, 1080)]
        )
        self.probed: list[Path] = []
        self.probed_bytes: list[bytes] = []
        self.probe_error: MediaToolError | None = None
        self.remux_error: MediaToolError | None = None

    async def probe_streams(self, path: Path) -> list[StreamInfo]:
        self.probed.append(path)
        self.probed_bytes.append(path.read_bytes())
        if self.probe_error:
            raise self.probe_error
        return self.streams

    async def remux_faststart(self, input_path: Path, output_path: Path) -> Path:
        if self.remux_error:
            output_path.write_bytes(b"partial")
            raise self.remux_error
        output_path.write_bytes(self.REMUX_MARKER + input_path.read_bytes())
        return output_path


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    """Directory all per-request work directories are created in."""
    root = tmp_path / "uploads-tmp"
    root.mkdir()
    return root


@pytest.fixture
def settings(temp_root: Path) -> Settings:
    """Settings with small caps and a dedicated temp root."""
    return Settings(
        upload=UploadSettings(
            max_thumbnail_bytes=4096,
            max_video_bytes=8192,
            chunk_size_bytes=1024,
            temp_dir=str(temp_root),
        )
    )


@pytest.fixture
def blob_storage(tmp_path: Path) -> LocalBlobStorage:
    """Real local blob storage under the test directory."""
    return LocalBlobStorage(root=tmp_path / "assets", public_base_url=PUBLIC_BASE)


@pytest.fixture
def document_db() -> InMemoryDocumentDB:
    """Create in-memory document store."""
    return InMemoryDocumentDB()


@pytest.fixture
def media_tools() -> FakeMediaTools:
    """Create fake media tools reporting a 1920x1080 stream."""
    return FakeMediaTools()


@pytest.fixture
def service(blob_storage, document_db, media_tools, settings) -> AssetUploadService:
    """Create the upload service wired to the fakes."""
    return AssetUploadService(
        blob_storage=blob_storage,
        document_db=document_db,
        media_tools=media_tools,
        settings=settings,
    )


@pytest.fixture
async def video(document_db: InMemoryDocumentDB, settings: Settings) -> Video:
    """A stored video record owned by OWNER."""
    record = Video(user_id=OWNER, title="Boots", description="A walk")
    await document_db.insert(
        settings.document_db.collections.videos, record.model_dump(mode="json")
    )
    return record


def _stored(document_db: InMemoryDocumentDB, settings: Settings, video: Video) -> dict:
    return document_db.collections[settings.document_db.collections.videos][video.id]


def _blob_path(tmp_path: Path, bucket: str, url: str) -> Path:
    key = url.removeprefix(f"{PUBLIC_BASE}/{bucket}/")
    return tmp_path / "assets" / bucket / key


# =============================================================================
# Thumbnail Tests
# =============================================================================


class TestThumbnailUpload:
    """Tests for the thumbnail flow."""

    async def test_success(
        self, service, video, document_db, settings, tmp_path, temp_root
    ):
        data = b"\x89PNG\r\n\x1a\n" + b"p" * 2000

        result = await service.upload_thumbnail(
            VideoId.parse(video.id), OWNER, FakeUpload(data, "image/png")
        )

        bucket = settings.blob_storage.buckets.thumbnails
        assert result.asset_kind == AssetKind.THUMBNAIL
        assert result.media_type == "image/png"
        assert result.aspect_ratio is None
        assert result.size_bytes == len(data)
        assert "/" not in result.storage_key
        assert result.storage_key.endswith(".png")
        assert result.url == f"{PUBLIC_BASE}/{bucket}/{result.storage_key}"

        # Record updated
        assert result.video.thumbnail_url == result.url
        assert result.video.version == video.version + 1
        stored = _stored(document_db, settings, video)
        assert stored["thumbnail_url"] == result.url
        assert stored["video_url"] is None
        assert stored["version"] == 1

        # Bytes are identical to the input
        assert _blob_path(tmp_path, bucket, result.url).read_bytes() == data

        # Nothing left behind locally
        assert list(temp_root.iterdir()) == []

    async def test_content_type_parameters_are_ignored(self, service, video):
        result = await service.upload_thumbnail(
            VideoId.parse(video.id), OWNER, FakeUpload(b"jpg", "image/JPEG; q=1")
        )

        assert result.media_type == "image/jpeg"
        assert result.storage_key.endswith(".jpeg")

    async def test_does_not_probe_or_remux(self, service, video, media_tools):
        await service.upload_thumbnail(
            VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
        )

        assert media_tools.probed == []

    async def test_forbidden_for_non_owner(
        self, service, video, document_db, settings, tmp_path, temp_root
    ):
        with pytest.raises(ForbiddenException):
            await service.upload_thumbnail(
                VideoId.parse(video.id), OTHER_USER, FakeUpload(b"img", "image/png")
            )

        assert document_db.update_calls == 0
        assert _stored(document_db, settings, video)["thumbnail_url"] is None
        assert not (tmp_path / "assets").exists()
        assert list(temp_root.iterdir()) == []

    async def test_unsupported_media_type(
        self, service, video, document_db, tmp_path, temp_root
    ):
        with pytest.raises(UnsupportedMediaTypeException) as exc_info:
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"GIF89a", "image/gif")
            )

        assert exc_info.value.media_type == "image/gif"
        assert document_db.update_calls == 0
        assert not (tmp_path / "assets").exists()
        assert list(temp_root.iterdir()) == []

    async def test_missing_content_type(self, service, video):
        with pytest.raises(UnsupportedMediaTypeException):
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"img", None)
            )

    async def test_too_large(self, service, video, document_db, tmp_path, temp_root):
        with pytest.raises(PayloadTooLargeException) as exc_info:
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"x" * 4097, "image/png")
            )

        assert exc_info.value.max_bytes == 4096
        assert document_db.update_calls == 0
        assert not (tmp_path / "assets").exists()
        assert list(temp_root.iterdir()) == []

    async def test_video_not_found(self, service, document_db):
        with pytest.raises(VideoNotFoundException):
            await service.upload_thumbnail(
                VideoId.parse("6f9619ff-8b86-d011-b42d-00c04fc964ff"),
                OWNER,
                FakeUpload(b"img", "image/png"),
            )

        assert document_db.update_calls == 0


# =============================================================================
# Video Tests
# =============================================================================


class TestVideoUpload:
    """Tests for the video flow."""

    async def test_success(
        self, service, video, document_db, media_tools, settings, tmp_path, temp_root
    ):
        data = b"\x00\x00\x00\x18ftypmp42" + b"v" * 3000

        result = await service.upload_video(
            VideoId.parse(video.id), OWNER, FakeUpload(data, "video/mp4")
        )

        bucket = settings.blob_storage.buckets.videos
        assert result.asset_kind == AssetKind.VIDEO
        assert result.aspect_ratio == AspectRatio.LANDSCAPE
        assert result.storage_key.startswith("landscape/")
        assert result.storage_key.endswith(".mp4")
        assert result.video.video_url == result.url
        assert _stored(document_db, settings, video)["video_url"] == result.url

        # The probe ran on the staged input, the upload is the derived asset
        assert media_tools.probed_bytes == [data]
        stored_bytes = _blob_path(tmp_path, bucket, result.url).read_bytes()
        assert stored_bytes == FakeMediaTools.REMUX_MARKER + data
        assert result.size_bytes == len(stored_bytes)

        assert list(temp_root.iterdir()) == []

    @pytest.mark.parametrize(
        ("width", "height", "prefix"),
        [
            (1080, 1920, "portrait/"),
            (1000, 1000, "other/"),
        ],
    )
    async def test_orientation_prefix(
        self, service, video, media_tools, width, height, prefix
    ):
        media_tools.streams = [StreamInfo(0, "video", "h264", width, height)]

        result = await service.upload_video(
            VideoId.parse(video.id), OWNER, FakeUpload(b"mp4", "video/mp4")
        )

        assert result.storage_key.startswith(prefix)

    async def test_forbidden_for_non_owner(
        self, service, video, media_tools, temp_root
    ):
        with pytest.raises(ForbiddenException):
            await service.upload_video(
                VideoId.parse(video.id), OTHER_USER, FakeUpload(b"mp4", "video/mp4")
            )

        assert media_tools.probed == []
        assert list(temp_root.iterdir()) == []

    async def test_unsupported_media_type(self, service, video, media_tools, tmp_path):
        with pytest.raises(UnsupportedMediaTypeException):
            await service.upload_video(
                VideoId.parse(video.id), OWNER, FakeUpload(b"webm", "video/webm")
            )

        assert media_tools.probed == []
        assert not (tmp_path / "assets").exists()

    async def test_too_large(self, service, video, media_tools, tmp_path, temp_root):
        with pytest.raises(PayloadTooLargeException):
            await service.upload_video(
                VideoId.parse(video.id), OWNER, FakeUpload(b"v" * 8193, "video/mp4")
            )

        assert media_tools.probed == []
        assert not (tmp_path / "assets").exists()
        assert list(temp_root.iterdir()) == []

    async def test_no_streams(
        self, service, video, media_tools, document_db, tmp_path, temp_root
    ):
        media_tools.streams = []

        with pytest.raises(NoStreamsException):
            await service.upload_video(
                VideoId.parse(video.id), OWNER, FakeUpload(b"mp4", "video/mp4")
            )

        assert document_db.update_calls == 0
        assert not (tmp_path / "assets").exists()
        assert list(temp_root.iterdir()) == []

    async def test_probe_failure(self, service, video, media_tools, temp_root):
        media_tools.probe_error = MediaToolError("ffprobe", "exited with status 1")

        with pytest.raises(ProbeException):
            await service.upload_video(
                VideoId.parse(video.id), OWNER, FakeUpload(b"mp4", "video/mp4")
            )

        assert list(temp_root.iterdir()) == []

    async def test_transcode_failure(
        self, service, video, media_tools, document_db, tmp_path, temp_root
    ):
        media_tools.remux_error = MediaToolError("ffmpeg", "exited with status 1")

        with pytest.raises(TranscodeException):
            await service.upload_video(
                VideoId.parse(video.id), OWNER, FakeUpload(b"mp4", "video/mp4")
            )

        assert document_db.update_calls == 0
        assert not (tmp_path / "assets").exists()
        assert list(temp_root.iterdir()) == []


# =============================================================================
# Storage / Persistence Failures
# =============================================================================


class TestPipelineFailures:
    """Tests for failures after the asset is processed."""

    async def test_storage_failure(
        self, document_db, media_tools, settings, video, temp_root
    ):
        blob_storage = AsyncMock()
        blob_storage.upload.side_effect = BlobStorageError(
            "upload", "tubely-thumbnails", "k.png", "bucket unreachable"
        )
        service = AssetUploadService(blob_storage, document_db, media_tools, settings)

        with pytest.raises(StorageException) as exc_info:
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
            )

        assert "bucket unreachable" in exc_info.value.reason
        assert document_db.update_calls == 0
        assert _stored(document_db, settings, video)["thumbnail_url"] is None
        assert list(temp_root.iterdir()) == []

    async def test_rejected_key_is_a_storage_failure(
        self, service, document_db, settings, video, temp_root
    ):
        """A key the local backend refuses surfaces as a storage failure."""
        with (
            patch(
                "src.application.services.upload.build_storage_key",
                return_value="../../escape.png",
            ),
            pytest.raises(StorageException) as exc_info,
        ):
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
            )

        assert exc_info.value.reason == "key escapes the bucket"
        assert document_db.update_calls == 0
        assert list(temp_root.iterdir()) == []

    async def test_upload_receives_validated_content_type(
        self, document_db, media_tools, settings, video
    ):
        blob_storage = AsyncMock()
        blob_storage.upload.return_value.size_bytes = 3
        blob_storage.public_url = lambda bucket, key: f"https://cdn/{bucket}/{key}"
        service = AssetUploadService(blob_storage, document_db, media_tools, settings)

        result = await service.upload_thumbnail(
            VideoId.parse(video.id), OWNER, FakeUpload(b"img", "IMAGE/PNG")
        )

        call = blob_storage.upload.await_args
        assert call.args[0] == settings.blob_storage.buckets.thumbnails
        assert call.args[1] == result.storage_key
        assert call.kwargs["content_type"] == "image/png"
        assert result.url.startswith("https://cdn/")

    async def test_persistence_failure(
        self, blob_storage, media_tools, settings, video, temp_root
    ):
        document_db = AsyncMock()
        document_db.find_by_id.return_value = video.model_dump(mode="json")
        document_db.update.side_effect = DocumentDBError(
            "update", "videos", "primary stepped down"
        )
        service = AssetUploadService(blob_storage, document_db, media_tools, settings)

        with pytest.raises(PersistenceException) as exc_info:
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
            )

        assert "primary stepped down" in exc_info.value.reason
        assert list(temp_root.iterdir()) == []

    async def test_concurrent_modification(
        self, service, document_db, settings, video
    ):
        # Another writer bumps the version after our read
        original_find = document_db.find_by_id

        async def find_then_race(collection, document_id):
            doc = await original_find(collection, document_id)
            document_db.collections[collection][document_id]["version"] = 5
            return doc

        document_db.find_by_id = find_then_race

        with pytest.raises(PersistenceException) as exc_info:
            await service.upload_thumbnail(
                VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
            )

        assert "concurrently" in exc_info.value.reason
        assert _stored(document_db, settings, video)["thumbnail_url"] is None

    async def test_update_is_guarded_by_version(
        self, blob_storage, media_tools, settings, video
    ):
        document_db = AsyncMock()
        document_db.find_by_id.return_value = video.model_dump(mode="json")
        document_db.update.return_value = True
        service = AssetUploadService(blob_storage, document_db, media_tools, settings)

        await service.upload_thumbnail(
            VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
        )

        call = document_db.update.await_args
        assert call.args[0] == settings.document_db.collections.videos
        assert call.args[1] == video.id
        assert set(call.args[2]) == {"thumbnail_url", "updated_at", "version"}
        assert call.args[2]["version"] == video.version + 1
        assert call.kwargs["match"] == {"version": video.version}

    def test_max_bytes_for(self, service):
        assert service.max_bytes_for(AssetKind.THUMBNAIL) == 4096
        assert service.max_bytes_for(AssetKind.VIDEO) == 8192

    async def test_accepts_injected_video_service(
        self, blob_storage, document_db, media_tools, settings, video
    ):
        videos = VideoService(document_db, settings.document_db.collections.videos)
        service = AssetUploadService(
            blob_storage, document_db, media_tools, settings, video_service=videos
        )

        result = await service.upload_thumbnail(
            VideoId.parse(video.id), OWNER, FakeUpload(b"img", "image/png")
        )

        assert result.video.thumbnail_url is not None
