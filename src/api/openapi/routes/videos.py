"""Video record endpoints."""

from datetime import datetime
from typing import Self

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from src.api.dependencies import CurrentUserDep, VideoIdDep, VideoServiceDep
from src.application.dtos.upload import CreateVideoRequest
from src.domain.models.video import Video

router = APIRouter()


class VideoResponse(BaseModel):
    """A video record as returned to its owner."""

    id: str = Field(description="Video UUID")
    user_id: str = Field(description="Owner's user ID")
    title: str = Field(description="Video title")
    description: str = Field(description="Video description")
    thumbnail_url: str | None = Field(description="Public thumbnail URL, if uploaded")
    video_url: str | None = Field(description="Public video URL, if uploaded")
    created_at: datetime = Field(description="When the record was created")
    updated_at: datetime = Field(description="Last update timestamp")

    @classmethod
    def from_video(cls, video: Video) -> Self:
        """Build the response from a domain record."""
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )


@router.post(
    "/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create video",
    description="Create a draft video record owned by the caller.",
)
async def create_video(
    request: CreateVideoRequest,
    user_id: CurrentUserDep,
    service: VideoServiceDep,
) -> VideoResponse:
    """Create a draft record that assets can be uploaded to."""
    video = await service.create_video(user_id, request)
    return VideoResponse.from_video(video)


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    description="Get a video record. Only its owner may read it.",
)
async def get_video(
    video_id: VideoIdDep,
    user_id: CurrentUserDep,
    service: VideoServiceDep,
) -> VideoResponse:
    """Get a video record by ID."""
    video = await service.get_owned_video(video_id, user_id)
    return VideoResponse.from_video(video)
