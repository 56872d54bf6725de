"""Application services for video records and asset uploads."""

from src.application.services.media import FastStartTranscoder, GeometryClassifier
from src.application.services.staging import TempFileStager
from src.application.services.upload import AssetUploadService
from src.application.services.videos import VideoService

__all__ = [
    "AssetUploadService",
    "FastStartTranscoder",
    "GeometryClassifier",
    "TempFileStager",
    "VideoService",
]
