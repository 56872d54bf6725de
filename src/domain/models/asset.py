"""Asset kinds, pipeline steps and geometry classification."""

from enum import Enum


class AssetKind(str, Enum):
    """Kind of asset attached to a video record."""

    THUMBNAIL = "thumbnail"
    VIDEO = "video"


class UploadStep(str, Enum):
    """States an upload passes through, in order."""

    RECEIVED = "received"
    STAGED = "staged"
    VALIDATED = "validated"
    CLASSIFIED = "classified"  # video only
    TRANSCODED = "transcoded"  # video only
    KEYED = "keyed"
    STORED = "stored"
    PERSISTED = "persisted"
    FAILED = "failed"


class AspectRatio(str, Enum):
    """Coarse orientation bucket of a video."""

    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    OTHER = "other"

    @property
    def prefix(self) -> str:
        """Storage path prefix for videos in this bucket."""
        return _PREFIXES[self]


_PREFIXES = {
    AspectRatio.LANDSCAPE: "landscape",
    AspectRatio.PORTRAIT: "portrait",
    AspectRatio.OTHER: "other",
}


def classify_aspect_ratio(width: int, height: int) -> AspectRatio:
    """Bucket a frame size by integer-ratio comparison.

    Uses floor division on purpose: 16:9 when ``height // 9 == width // 16``,
    9:16 when ``height // 16 == width // 9``, anything else is OTHER. The
    result only picks a storage prefix, it is not a display aspect ratio.

    >>> classify_aspect_ratio(1920, 1080)
    <AspectRatio.LANDSCAPE: '16:9'>
    >>> classify_aspect_ratio(1080, 1920)
    <AspectRatio.PORTRAIT: '9:16'>
    >>> classify_aspect_ratio(1000, 1000)
    <AspectRatio.OTHER: 'other'>
    """
    if height // 9 == width // 16:
        return AspectRatio.LANDSCAPE
    if height // 16 == width // 9:
        return AspectRatio.PORTRAIT
    return AspectRatio.OTHER
