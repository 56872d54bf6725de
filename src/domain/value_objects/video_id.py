"""Video ID value object."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.exceptions import InvalidIdentifierException


class VideoId(BaseModel):
    """Value object for a validated video record ID.

    IDs are UUIDs; the canonical form is the lower-case hyphenated string.

    Examples:
        >>> VideoId.parse("6F9619FF-8B86-D011-B42D-00C04FC964FF").value
        '6f9619ff-8b86-d011-b42d-00c04fc964ff'
    """

    value: str = Field(description="Canonical UUID string")

    @classmethod
    def parse(cls, raw: str) -> VideoId:
        """Parse a path segment into a VideoId.

        Args:
            raw: The untrusted identifier from the request path.

        Returns:
            A VideoId holding the canonical UUID string.

        Raises:
            InvalidIdentifierException: If ``raw`` is not a UUID.
        """
        try:
            return cls(value=str(UUID(raw.strip())))
        except (ValueError, AttributeError) as e:
            raise InvalidIdentifierException(str(raw)) from e

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VideoId):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return False
