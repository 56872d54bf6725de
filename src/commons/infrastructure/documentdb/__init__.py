"""Record store abstractions and implementations."""

from src.commons.infrastructure.documentdb.base import DocumentDBBase, DocumentDBError
from src.commons.infrastructure.documentdb.mongodb_provider import MongoDBDocumentDB

__all__ = [
    "DocumentDBBase",
    "DocumentDBError",
    "MongoDBDocumentDB",
]
