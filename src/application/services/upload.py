"""Upload pipeline coordinator for thumbnails and videos."""

import tempfile
from pathlib import Path

from src.application.dtos.upload import UploadAssetResponse, UploadSource
from src.application.services.media import FastStartTranscoder, GeometryClassifier
from src.application.services.staging import TempFileStager
from src.application.services.videos import VideoService
from src.commons.infrastructure.blob.base import BlobStorageBase, BlobStorageError
from src.commons.infrastructure.documentdb.base import DocumentDBBase, DocumentDBError
from src.commons.settings.models import Settings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    DomainException,
    PersistenceException,
    StorageException,
    UploadPipelineException,
)
from src.domain.models.asset import AspectRatio, AssetKind, UploadStep
from src.domain.models.video import Video
from src.domain.value_objects.media_type import extension_for, validate_media_type
from src.domain.value_objects.storage_key import build_storage_key
from src.domain.value_objects.video_id import VideoId
from src.infrastructure.media.base import MediaToolsBase


class AssetUploadService:
    """Runs an uploaded asset through the pipeline and attaches it to a video.

    Pipeline per request:
    1. Resolve the video record and check the caller owns it
    2. Validate the declared media type, then stage the bytes locally
    3. Videos only: classify orientation and remux for fast start
    4. Generate an opaque storage key
    5. Upload to the blob store
    6. Set the asset URL on the record

    All local files live in a per-request temporary directory that is
    removed however the pipeline ends. The record update is the last step,
    so a failure anywhere earlier leaves it untouched.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        document_db: DocumentDBBase,
        media_tools: MediaToolsBase,
        settings: Settings,
        video_service: VideoService | None = None,
        stager: TempFileStager | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            blob_storage: Blob storage provider.
            document_db: Document database provider.
            media_tools: Probe/remux tools for videos.
            settings: Application settings.
            video_service: Record lookups; built from ``document_db`` if omitted.
            stager: Temp file stager; built from upload settings if omitted.
        """
        self._blob = blob_storage
        self._db = document_db
        self._logger = get_logger(__name__)

        self._videos = video_service or VideoService(
            document_db, settings.document_db.collections.videos
        )
        self._stager = stager or TempFileStager(settings.upload.chunk_size_bytes)
        self._classifier = GeometryClassifier(media_tools)
        self._transcoder = FastStartTranscoder(media_tools)

        self._temp_root = settings.upload.temp_dir
        self._buckets = {
            AssetKind.THUMBNAIL: settings.blob_storage.buckets.thumbnails,
            AssetKind.VIDEO: settings.blob_storage.buckets.videos,
        }
        self._max_bytes = {
            AssetKind.THUMBNAIL: settings.upload.max_thumbnail_bytes,
            AssetKind.VIDEO: settings.upload.max_video_bytes,
        }

    def max_bytes_for(self, kind: AssetKind) -> int:
        """Size cap applied to uploads of ``kind``."""
        return self._max_bytes[kind]

    async def upload_thumbnail(
        self,
        video_id: VideoId,
        user_id: str,
        source: UploadSource,
    ) -> UploadAssetResponse:
        """Store a thumbnail image and set the record's ``thumbnail_url``."""
        return await self.upload(AssetKind.THUMBNAIL, video_id, user_id, source)

    async def upload_video(
        self,
        video_id: VideoId,
        user_id: str,
        source: UploadSource,
    ) -> UploadAssetResponse:
        """Store a fast-start MP4 and set the record's ``video_url``."""
        return await self.upload(AssetKind.VIDEO, video_id, user_id, source)

    async def upload(
        self,
        kind: AssetKind,
        video_id: VideoId,
        user_id: str,
        source: UploadSource,
    ) -> UploadAssetResponse:
        """Run the full pipeline for one uploaded part.

        Args:
            kind: Asset kind being uploaded.
            video_id: Target video record.
            user_id: Authenticated caller.
            source: The uploaded part.

        Returns:
            The updated record plus details of the stored asset.

        Raises:
            VideoNotFoundException: If the record does not exist.
            ForbiddenException: If the caller does not own the record.
            UnsupportedMediaTypeException: If the declared type is not allowed.
            PayloadTooLargeException: If the part exceeds the size cap.
            UploadPipelineException: If an internal step fails.
        """
        step = UploadStep.RECEIVED
        with LogContext(video_id=str(video_id), user_id=user_id, asset_kind=kind.value):
            try:
                video = await self._videos.get_owned_video(video_id, user_id)

                media_type = validate_media_type(source.content_type, kind)
                step = UploadStep.VALIDATED
                self._log_step(step, media_type=media_type)

                aspect_ratio: AspectRatio | None = None
                bucket = self._buckets[kind]

                with tempfile.TemporaryDirectory(
                    prefix="tubely-upload-", dir=self._temp_root
                ) as workdir:
                    staged = await self._stager.stage(
                        source,
                        Path(workdir) / f"upload.{extension_for(media_type)}",
                        self._max_bytes[kind],
                        media_type,
                    )
                    step = UploadStep.STAGED
                    self._log_step(step, size_bytes=staged.size_bytes)

                    upload_path = staged.path
                    if kind == AssetKind.VIDEO:
                        aspect_ratio = await self._classifier.classify(staged.path)
                        step = UploadStep.CLASSIFIED
                        self._log_step(step, aspect_ratio=aspect_ratio.value)

                        upload_path = await self._transcoder.transcode(staged.path)
                        step = UploadStep.TRANSCODED
                        self._log_step(step)

                    key = build_storage_key(kind, media_type, aspect_ratio)
                    step = UploadStep.KEYED
                    self._log_step(step, storage_key=key)

                    size_bytes = await self._store(bucket, key, upload_path, media_type)
                    step = UploadStep.STORED
                    self._log_step(step, bucket=bucket, size_bytes=size_bytes)

                url = self._blob.public_url(bucket, key)
                updated = await self._persist(video, kind, url)

            except UploadPipelineException as e:
                self._logger.error(
                    f"Upload failed at {e.step.value}",
                    extra={"step": e.step.value, "reason": e.reason},
                    exc_info=e.__cause__ is not None,
                )
                raise
            except DomainException as e:
                self._logger.warning(
                    "Upload rejected",
                    extra={"step": step.value, "reason": str(e)},
                )
                raise

            self._logger.info(
                f"{kind.value.capitalize()} uploaded",
                extra={"storage_key": key, "url": url, "size_bytes": size_bytes},
            )

        return UploadAssetResponse(
            video=updated,
            asset_kind=kind,
            storage_key=key,
            url=url,
            size_bytes=size_bytes,
            media_type=media_type,
            aspect_ratio=aspect_ratio,
        )

    async def _store(self, bucket: str, key: str, path: Path, media_type: str) -> int:
        """Upload a local file to the blob store; returns the stored size."""
        try:
            with path.open("rb") as data:
                stored = await self._blob.upload(
                    bucket,
                    key,
                    data,
                    content_type=media_type,
                )
        except BlobStorageError as e:
            raise StorageException(e.reason) from e
        except OSError as e:
            raise StorageException(str(e)) from e
        return stored.size_bytes

    async def _persist(self, video: Video, kind: AssetKind, url: str) -> Video:
        """Write the asset URL, guarded by the version read at the start."""
        updated = video.with_asset_url(kind, url)
        field = "thumbnail_url" if kind == AssetKind.THUMBNAIL else "video_url"
        updates = updated.model_dump(
            mode="json",
            include={field, "updated_at", "version"},
        )

        try:
            matched = await self._db.update(
                self._videos.collection,
                video.id,
                updates,
                match={"version": video.version},
            )
        except DocumentDBError as e:
            raise PersistenceException(e.reason) from e

        if not matched:
            raise PersistenceException("Video was modified concurrently or deleted")
        return updated

    def _log_step(self, step: UploadStep, **details: object) -> None:
        self._logger.debug(f"Upload step {step.value}", extra=details)
