"""Opaque storage key generation."""

import base64
import secrets

from src.domain.models.asset import AspectRatio, AssetKind
from src.domain.value_objects.media_type import extension_for

KEY_BYTES = 32


def generate_opaque_id() -> str:
    """Draw 32 random bytes and encode them URL-safely (with padding)."""
    return base64.urlsafe_b64encode(secrets.token_bytes(KEY_BYTES)).decode("ascii")


def build_storage_key(
    kind: AssetKind,
    media_type: str,
    aspect_ratio: AspectRatio | None = None,
) -> str:
    """Compose the object path for a new asset.

    Videos are prefixed with their orientation bucket
    (``landscape/<id>.mp4``); thumbnails are bare (``<id>.png``). Collisions
    are not checked for, 256 bits of entropy make them negligible.

    Args:
        kind: Asset kind being stored.
        media_type: Validated media type, used for the extension.
        aspect_ratio: Orientation bucket, required for videos.

    Returns:
        Storage path relative to the asset kind's bucket.
    """
    name = f"{generate_opaque_id()}.{extension_for(media_type)}"
    if kind == AssetKind.VIDEO:
        if aspect_ratio is None:
            raise ValueError("Video keys require an aspect ratio")
        return f"{aspect_ratio.prefix}/{name}"
    return name
