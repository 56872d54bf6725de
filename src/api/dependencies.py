"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Path, Request

from src.application.services.upload import AssetUploadService
from src.application.services.videos import VideoService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.domain.value_objects.video_id import VideoId
from src.infrastructure.auth import IdentityServiceBase
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


def get_video_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoService:
    """Get video record service."""
    return VideoService(
        document_db=factory.get_document_db(),
        collection=settings.document_db.collections.videos,
    )


def get_upload_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    video_service: Annotated[VideoService, Depends(get_video_service)],
) -> AssetUploadService:
    """Get the upload pipeline with all dependencies.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.
        video_service: Record lookups.

    Returns:
        Configured upload service.
    """
    return AssetUploadService(
        blob_storage=factory.get_blob_storage(),
        document_db=factory.get_document_db(),
        media_tools=factory.get_media_tools(),
        settings=settings,
        video_service=video_service,
    )


def get_identity_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> IdentityServiceBase:
    """Get the bearer token validator."""
    return factory.get_identity_service()


def get_current_user(
    request: Request,
    identity: Annotated[IdentityServiceBase, Depends(get_identity_service)],
) -> str:
    """Resolve the caller's user ID from the Authorization header.

    Raises:
        UnauthenticatedException: If the header is missing or the token invalid.
    """
    return identity.authenticate(request.headers)


def get_video_id(
    video_id: Annotated[str, Path(description="Target video record ID")],
) -> VideoId:
    """Parse the ``video_id`` path parameter.

    Raises:
        InvalidIdentifierException: If it is not a valid UUID.
    """
    return VideoId.parse(video_id)


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]
UploadServiceDep = Annotated[AssetUploadService, Depends(get_upload_service)]
IdentityDep = Annotated[IdentityServiceBase, Depends(get_identity_service)]
CurrentUserDep = Annotated[str, Depends(get_current_user)]
VideoIdDep = Annotated[VideoId, Depends(get_video_id)]


async def init_services(settings: Settings) -> None:
    """Initialize all infrastructure services on startup.

    Args:
        settings: Application settings.
    """
    # Initialize factory with settings
    factory = get_factory(settings)

    # Pre-initialize critical services to fail fast
    blob_storage = factory.get_blob_storage()
    factory.get_document_db()
    factory.get_media_tools()
    factory.get_identity_service()

    buckets = settings.blob_storage.buckets
    for bucket in (buckets.thumbnails, buckets.videos):
        if not await blob_storage.bucket_exists(bucket):
            await blob_storage.create_bucket(bucket)
            logger.info("Created bucket", extra={"bucket": bucket})


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
