"""MongoDB access for docpager."""

from .connection import MongoManager, mongo_manager, get_collection
from .documents import (
    MongoAggregateExecutor,
    validate_collection_name,
    serialize_document,
    list_documents
)

__all__ = [
    "MongoManager",
    "mongo_manager",
    "get_collection",
    "MongoAggregateExecutor",
    "validate_collection_name",
    "serialize_document",
    "list_documents"
]
