"""Data Transfer Objects for application layer."""

from src.application.dtos.upload import (
    CreateVideoRequest,
    StagedAsset,
    UploadAssetResponse,
    UploadSource,
)

__all__ = [
    "CreateVideoRequest",
    "StagedAsset",
    "UploadAssetResponse",
    "UploadSource",
]
