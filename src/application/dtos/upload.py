"""DTOs for asset upload operations."""

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from src.domain.models.asset import AspectRatio, AssetKind
from src.domain.models.video import Video


class UploadSource(Protocol):
    """An uploaded part that can be read in chunks.

    FastAPI's ``UploadFile`` satisfies this protocol.
    """

    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


class StagedAsset(BaseModel):
    """Uploaded bytes copied to local temporary storage."""

    path: Path = Field(description="Local file holding the bytes")
    size_bytes: int = Field(ge=0, description="Number of bytes staged")
    content_type: str = Field(description="Validated media type")


class CreateVideoRequest(BaseModel):
    """Request to create a draft video record."""

    title: str = Field(min_length=1, max_length=200, description="Video title")
    description: str = Field(
        default="",
        max_length=5000,
        description="Video description",
    )


class UploadAssetResponse(BaseModel):
    """Outcome of a completed upload."""

    video: Video = Field(description="The updated video record")
    asset_kind: AssetKind = Field(description="Kind of asset uploaded")
    storage_key: str = Field(description="Path of the asset within its bucket")
    url: str = Field(description="Public URL stored on the record")
    size_bytes: int = Field(ge=0, description="Size of the stored asset")
    media_type: str = Field(description="Validated media type")
    aspect_ratio: AspectRatio | None = Field(
        default=None,
        description="Orientation bucket (videos only)",
    )
