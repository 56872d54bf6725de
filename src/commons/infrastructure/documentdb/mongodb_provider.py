"""MongoDB record store."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.documentdb.base import DocumentDBBase, DocumentDBError

PROTECTED_FIELDS = frozenset({"id", "_id"})


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = dict(document)
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(doc: dict[str, Any]) -> dict[str, Any]:
    restored = dict(doc)
    restored["id"] = str(restored.pop("_id"))
    return restored


class MongoDBDocumentDB(DocumentDBBase):
    """Motor-backed store; a record's ``id`` is kept as Mongo's ``_id``."""

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        timeout_ms: int = 5000,
    ) -> None:
        """Initialize the Motor client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Database holding the collections.
            timeout_ms: Server selection timeout; bounds how long a request
                waits when the server is down.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string,
            serverSelectionTimeoutMS=timeout_ms,
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        try:
            result = await self._db[collection].insert_one(_to_mongo(document))
        except PyMongoError as e:
            raise DocumentDBError("insert", collection, str(e)) from e
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        try:
            doc = await self._db[collection].find_one({"_id": document_id})
        except PyMongoError as e:
            raise DocumentDBError("find", collection, str(e)) from e
        return _from_mongo(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        match: dict[str, Any] | None = None,
    ) -> bool:
        """``$set`` the fields on the document matching ID and ``match``."""
        fields = {k: v for k, v in updates.items() if k not in PROTECTED_FIELDS}
        filters: dict[str, Any] = {**(match or {}), "_id": document_id}
        try:
            result = await self._db[collection].update_one(filters, {"$set": fields})
        except PyMongoError as e:
            raise DocumentDBError("update", collection, str(e)) from e
        return bool(result.matched_count > 0)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MongoDB unreachable: {e}",
                details={"database": self._database_name},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            details={"database": self._database_name},
        )

    async def close(self) -> None:
        self._client.close()
