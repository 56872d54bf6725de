"""Application layer - use cases and orchestration.

This layer contains:
- Services: the upload pipeline and its steps
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    CreateVideoRequest,
    StagedAsset,
    UploadAssetResponse,
)
from src.application.services import (
    AssetUploadService,
    TempFileStager,
    VideoService,
)

__all__ = [
    # DTOs
    "CreateVideoRequest",
    "StagedAsset",
    "UploadAssetResponse",
    # Services
    "AssetUploadService",
    "TempFileStager",
    "VideoService",
]
