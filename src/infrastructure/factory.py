"""Infrastructure factory for creating service instances from configuration."""

from pathlib import Path
from typing import Any, cast

from src.commons.infrastructure.blob import (
    BlobStorageBase,
    LocalBlobStorage,
    MinioBlobStorage,
)
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.auth import IdentityServiceBase, JWTIdentityService
from src.infrastructure.media import FFmpegMediaTools, MediaToolsBase

ASSETS_MOUNT_PATH = "/assets"


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    @property
    def settings(self) -> Settings:
        """Settings the factory was built with."""
        return self._settings

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.

        Raises:
            ValueError: If provider is not supported.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            provider = blob_settings.provider

            if provider == "local":
                public_base_url = blob_settings.public_base_url or (
                    f"http://localhost:{self._settings.server.port}{ASSETS_MOUNT_PATH}"
                )
                self._instances["blob_storage"] = LocalBlobStorage(
                    root=Path(blob_settings.local_root).resolve(),
                    public_base_url=public_base_url,
                    chunk_size=self._settings.upload.chunk_size_bytes,
                )
            elif provider == "minio":
                self._instances["blob_storage"] = MinioBlobStorage(
                    endpoint=blob_settings.endpoint,
                    access_key=blob_settings.access_key,
                    secret_key=blob_settings.secret_key,
                    secure=blob_settings.use_ssl,
                    region=blob_settings.region,
                    public_base_url=blob_settings.public_base_url,
                )
            else:
                raise ValueError(f"Unsupported blob storage provider: {provider}")

        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            # Build connection string from settings
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
                timeout_ms=doc_settings.timeout_ms,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_media_tools(self) -> MediaToolsBase:
        """Get media tools instance.

        Returns:
            Configured probe/remux tools.
        """
        if "media_tools" not in self._instances:
            media_settings = self._settings.media
            self._instances["media_tools"] = FFmpegMediaTools(
                ffmpeg_path=media_settings.ffmpeg_path,
                ffprobe_path=media_settings.ffprobe_path,
                timeout_seconds=media_settings.timeout_seconds,
            )
        return cast("MediaToolsBase", self._instances["media_tools"])

    def get_identity_service(self) -> IdentityServiceBase:
        """Get identity service instance.

        Returns:
            Configured bearer token validator.

        Raises:
            ValueError: If no JWT secret is configured.
        """
        if "identity" not in self._instances:
            auth_settings = self._settings.auth
            self._instances["identity"] = JWTIdentityService(
                secret=auth_settings.jwt_secret,
                algorithm=auth_settings.algorithm,
                issuer=auth_settings.issuer,
                leeway_seconds=auth_settings.leeway_seconds,
            )
        return cast("IdentityServiceBase", self._instances["identity"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            if hasattr(instance, "close"):
                try:
                    close_result = instance.close()
                    if hasattr(close_result, "__await__"):
                        await close_result
                except Exception as e:
                    self._logger.warning(
                        f"Error closing {name}",
                        extra={"error": str(e)},
                    )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
