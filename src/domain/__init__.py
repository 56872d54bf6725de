"""Domain layer - business models and logic."""

from src.domain.exceptions import (
    DomainException,
    ForbiddenException,
    InvalidIdentifierException,
    NoStreamsException,
    PayloadTooLargeException,
    PersistenceException,
    ProbeException,
    StagingException,
    StorageException,
    TranscodeException,
    UnauthenticatedException,
    UnsupportedMediaTypeException,
    UploadPipelineException,
    VideoNotFoundException,
)
from src.domain.models import (
    AspectRatio,
    AssetKind,
    UploadStep,
    Video,
    classify_aspect_ratio,
)
from src.domain.value_objects import VideoId, build_storage_key, validate_media_type

__all__ = [
    # Exceptions
    "DomainException",
    "InvalidIdentifierException",
    "UnauthenticatedException",
    "ForbiddenException",
    "VideoNotFoundException",
    "UnsupportedMediaTypeException",
    "PayloadTooLargeException",
    "UploadPipelineException",
    "StagingException",
    "ProbeException",
    "NoStreamsException",
    "TranscodeException",
    "StorageException",
    "PersistenceException",
    # Models
    "Video",
    "AssetKind",
    "AspectRatio",
    "UploadStep",
    "classify_aspect_ratio",
    # Value Objects
    "VideoId",
    "build_storage_key",
    "validate_media_type",
]
