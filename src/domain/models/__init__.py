"""Domain models."""

from src.domain.models.asset import (
    AspectRatio,
    AssetKind,
    UploadStep,
    classify_aspect_ratio,
)
from src.domain.models.video import Video

__all__ = [
    # Video
    "Video",
    # Assets
    "AssetKind",
    "AspectRatio",
    "UploadStep",
    "classify_aspect_ratio",
]
