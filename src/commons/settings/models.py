"""Pydantic settings models for application configuration."""

from typing import Any, Literal

from pydantic import BaseModel, ByteSize, Field, TypeAdapter, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1 << 20

_BYTE_SIZE = TypeAdapter(ByteSize)


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "tubely-media-server"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8091, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    docs_enabled: bool = True


class AuthSettings(BaseModel):
    """Bearer token validation settings."""

    jwt_secret: str = ""
    algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    issuer: str | None = "tubely-access"
    leeway_seconds: int = Field(default=0, ge=0)


class BucketSettings(BaseModel):
    """Bucket name per asset kind."""

    thumbnails: str = "tubely-thumbnails"
    videos: str = "tubely-videos"


class BlobStorageSettings(BaseModel):
    """Blob storage settings (local filesystem or MinIO/S3)."""

    provider: Literal["local", "minio"] = "local"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    local_root: str = "assets"
    public_base_url: str | None = Field(
        default=None,
        description=(
            "Base URL stored references are built from. Defaults to the "
            "server's /assets mount (local) or the object endpoint (minio)."
        ),
    )


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "tubely"
    auth_source: str = "admin"
    timeout_ms: int = Field(default=5000, ge=100)
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class MediaToolSettings(BaseModel):
    """External media tool settings (ffmpeg/ffprobe)."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    timeout_seconds: int = Field(default=300, ge=1)


class UploadSettings(BaseModel):
    """Upload size caps and staging configuration."""

    max_thumbnail_bytes: int = Field(default=10 * MIB, ge=1)
    max_video_bytes: int = Field(default=1 << 30, ge=1)
    chunk_size_bytes: int = Field(default=MIB, ge=1024)
    multipart_overhead_bytes: int = Field(default=MIB, ge=0)
    temp_dir: str | None = None

    @field_validator(
        "max_thumbnail_bytes",
        "max_video_bytes",
        "chunk_size_bytes",
        "multipart_overhead_bytes",
        mode="before",
    )
    @classmethod
    def _parse_byte_size(cls, value: Any) -> Any:
        """Accept "10MiB"-style sizes as well as plain byte counts."""
        if isinstance(value, str) and not value.strip().isdigit():
            return int(_BYTE_SIZE.validate_python(value))
        return value


class TelemetrySettings(BaseModel):
    """Logging settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    media: MediaToolSettings = Field(default_factory=MediaToolSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TUBELY__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
