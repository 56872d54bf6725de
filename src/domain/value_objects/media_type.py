"""Declared media type validation per asset kind."""

from src.domain.exceptions import UnsupportedMediaTypeException
from src.domain.models.asset import AssetKind

ALLOWED_MEDIA_TYPES: dict[AssetKind, frozenset[str]] = {
    AssetKind.THUMBNAIL: frozenset({"image/jpeg", "image/png"}),
    AssetKind.VIDEO: frozenset({"video/mp4"}),
}


def parse_media_type(content_type: str | None) -> str:
    """Reduce a Content-Type header value to its bare ``type/subtype``.

    Parameters (``; charset=...``) are dropped and the result is lower-cased.
    Returns an empty string when the value is not shaped like a media type.
    """
    if not content_type:
        return ""
    media_type = content_type.split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or "/" in sub or " " in media_type:
        return ""
    return media_type


def validate_media_type(content_type: str | None, kind: AssetKind) -> str:
    """Check a declared content type against the allow-list for ``kind``.

    Only the declared type is checked; the bytes are never sniffed.

    Args:
        content_type: Content-Type declared for the uploaded part.
        kind: Asset kind being uploaded.

    Returns:
        The normalized media type.

    Raises:
        UnsupportedMediaTypeException: If the type is not allowed for ``kind``.
    """
    media_type = parse_media_type(content_type)
    if media_type not in ALLOWED_MEDIA_TYPES[kind]:
        raise UnsupportedMediaTypeException(content_type or "", kind)
    return media_type


def extension_for(media_type: str) -> str:
    """File extension derived from the subtype (``image/png`` -> ``png``)."""
    return media_type.split("/", 1)[1]
