"""Thumbnail and video upload endpoints."""

from typing import Annotated

from fastapi import APIRouter, File, UploadFile

from src.api.dependencies import CurrentUserDep, UploadServiceDep, VideoIdDep
from src.api.openapi.routes.videos import VideoResponse
from src.commons.telemetry import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post(
    "/thumbnail_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload thumbnail",
    description=(
        "Upload a JPEG or PNG thumbnail (max 10 MiB by default) for a video "
        "the caller owns. Returns the updated video record."
    ),
)
async def upload_thumbnail(
    video_id: VideoIdDep,
    user_id: CurrentUserDep,
    service: UploadServiceDep,
    thumbnail: Annotated[UploadFile, File(description="Thumbnail image")],
) -> VideoResponse:
    """Store a thumbnail and set the record's thumbnail URL."""
    logger.info(
        "Uploading thumbnail",
        extra={"video_id": str(video_id), "upload_filename": thumbnail.filename},
    )
    try:
        result = await service.upload_thumbnail(video_id, user_id, thumbnail)
    finally:
        await thumbnail.close()
    return VideoResponse.from_video(result.video)


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload video",
    description=(
        "Upload an MP4 (max 1 GiB by default) for a video the caller owns. "
        "The file is remuxed for fast start and stored under its orientation "
        "prefix. Returns the updated video record."
    ),
)
async def upload_video(
    video_id: VideoIdDep,
    user_id: CurrentUserDep,
    service: UploadServiceDep,
    video: Annotated[UploadFile, File(description="MP4 video file")],
) -> VideoResponse:
    """Store a processed video and set the record's video URL."""
    logger.info(
        "Uploading video",
        extra={"video_id": str(video_id), "upload_filename": video.filename},
    )
    try:
        result = await service.upload_video(video_id, user_id, video)
    finally:
        await video.close()
    return VideoResponse.from_video(result.video)
