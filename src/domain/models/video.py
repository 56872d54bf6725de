"""Video record domain model."""

from datetime import UTC, datetime
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field

from src.domain.models.asset import AssetKind


class Video(BaseModel):
    """A video record owned by a single user.

    The upload pipeline only ever touches ``thumbnail_url`` and ``video_url``
    (plus the bookkeeping fields); everything else is set at creation.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this video record",
    )
    user_id: str = Field(description="ID of the user who created the record")
    title: str = Field(default="", description="Video title")
    description: str = Field(default="", description="Video description")
    thumbnail_url: str | None = Field(
        default=None,
        description="Public URL of the uploaded thumbnail",
    )
    video_url: str | None = Field(
        default=None,
        description="Public URL of the uploaded video",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this record was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last update timestamp",
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Incremented on each update, used for optimistic concurrency",
    )

    def is_owned_by(self, user_id: str) -> bool:
        """Check whether ``user_id`` owns this record."""
        return self.user_id == user_id

    def with_asset_url(self, kind: AssetKind, url: str) -> Self:
        """Create a new instance with the URL for ``kind`` set.

        Args:
            kind: Which asset URL to set.
            url: Public URL of the stored asset.

        Returns:
            A new Video with the URL, a fresh timestamp and a bumped version.
        """
        field = "thumbnail_url" if kind == AssetKind.THUMBNAIL else "video_url"
        return self.model_copy(
            update={
                field: url,
                "updated_at": datetime.now(UTC),
                "version": self.version + 1,
            }
        )
