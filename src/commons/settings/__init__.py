"""Settings management module."""

from src.commons.settings.loader import (
    ConfigurationError,
    SettingsLoader,
    get_settings,
    reset_settings,
)
from src.commons.settings.models import (
    AppSettings,
    AuthSettings,
    BlobStorageSettings,
    BucketSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    MediaToolSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    UploadSettings,
)

__all__ = [
    # Loader
    "ConfigurationError",
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    "AuthSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Processing
    "MediaToolSettings",
    "UploadSettings",
    # Telemetry
    "TelemetrySettings",
]
