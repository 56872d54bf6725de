"""Domain value objects."""

from src.domain.value_objects.media_type import (
    ALLOWED_MEDIA_TYPES,
    extension_for,
    parse_media_type,
    validate_media_type,
)
from src.domain.value_objects.storage_key import build_storage_key, generate_opaque_id
from src.domain.value_objects.video_id import VideoId

__all__ = [
    "VideoId",
    # Media types
    "ALLOWED_MEDIA_TYPES",
    "parse_media_type",
    "validate_media_type",
    "extension_for",
    # Storage keys
    "build_storage_key",
    "generate_opaque_id",
]
