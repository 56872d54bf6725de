"""Record store capability."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.blob.base import HealthStatus


class DocumentDBError(Exception):
    """The record store could not complete an operation."""

    def __init__(self, operation: str, collection: str, reason: str) -> None:
        self.operation = operation
        self.collection = collection
        self.reason = reason
        super().__init__(f"{operation} on {collection} failed: {reason}")


class DocumentDBBase(ABC):
    """Keeps video records as plain documents keyed by ``id``.

    Implementations map ``id`` to whatever the backend uses natively and
    raise ``DocumentDBError`` for backend failures. A missing document is
    not an error.
    """

    @abstractmethod
    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        """Insert a document and return its ID."""

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Fetch one document, or None if there is no such ID."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        match: dict[str, Any] | None = None,
    ) -> bool:
        """Set fields on one document.

        Args:
            collection: Collection name.
            document_id: Document to change.
            updates: Fields to set; ``id`` is never rewritten.
            match: Field values the stored document must still hold,
                e.g. ``{"version": 3}``. Nothing is written otherwise.

        Returns:
            True if a document matched, False otherwise.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Ping the backend and time the round trip."""

    async def close(self) -> None:  # noqa: B027
        """Release connections. Default is a no-op."""
