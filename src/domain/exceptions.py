"""Domain exceptions for the Tubely upload pipeline."""

from src.domain.models.asset import AssetKind, UploadStep


class DomainException(Exception):
    """Base exception for domain errors."""


class InvalidIdentifierException(DomainException):
    """Raised when a path identifier is not a valid video ID."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid video ID: '{value}'")


class UnauthenticatedException(DomainException):
    """Raised when the caller's bearer token is missing or invalid."""

    def __init__(self, reason: str = "Missing or invalid credentials") -> None:
        self.reason = reason
        super().__init__(reason)


class ForbiddenException(DomainException):
    """Raised when the caller does not own the target video."""

    def __init__(self, video_id: str, user_id: str) -> None:
        self.video_id = video_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own video {video_id}")


class VideoNotFoundException(DomainException):
    """Raised when a requested video record is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class UnsupportedMediaTypeException(DomainException):
    """Raised when a declared content type is not allowed for the asset kind."""

    def __init__(self, media_type: str, kind: AssetKind) -> None:
        self.media_type = media_type
        self.kind = kind
        super().__init__(f"Unsupported media type for {kind.value}: '{media_type}'")


class PayloadTooLargeException(DomainException):
    """Raised when an upload exceeds its size cap."""

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        super().__init__(f"Upload exceeds the maximum size of {max_bytes} bytes")


class UploadPipelineException(DomainException):
    """Base for internal failures inside the upload pipeline.

    Carries the step that failed and the underlying cause. The message is
    meant for logs; clients get a generic message per step.
    """

    def __init__(self, step: UploadStep, reason: str) -> None:
        self.step = step
        self.reason = reason
        super().__init__(f"Upload failed at {step.value}: {reason}")


class StagingException(UploadPipelineException):
    """Raised when the upload cannot be copied to local temporary storage."""

    def __init__(self, reason: str) -> None:
        super().__init__(UploadStep.STAGED, reason)


class ProbeException(UploadPipelineException):
    """Raised when the probe tool fails or its output cannot be used."""

    def __init__(self, reason: str) -> None:
        super().__init__(UploadStep.CLASSIFIED, reason)


class NoStreamsException(ProbeException):
    """Raised when the probe reports no media streams at all."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No media streams found in {path}")


class TranscodeException(UploadPipelineException):
    """Raised when the fast-start remux fails."""

    def __init__(self, reason: str) -> None:
        super().__init__(UploadStep.TRANSCODED, reason)


class StorageException(UploadPipelineException):
    """Raised when the blob store rejects the upload."""

    def __init__(self, reason: str) -> None:
        super().__init__(UploadStep.STORED, reason)


class PersistenceException(UploadPipelineException):
    """Raised when the video record cannot be read or updated."""

    def __init__(self, reason: str) -> None:
        super().__init__(UploadStep.PERSISTED, reason)
