"""Database operations for paginated document listings."""

import logging
from typing import Any, Dict, List

from bson import ObjectId
from bson.errors import BSONError
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from ..pagination import PaginationRequest, PageResult, paginate
from ..errors.problem_details import BadRequestError
from .connection import get_collection


logger = logging.getLogger(__name__)


class MongoAggregateExecutor:
    """Runs aggregation pipelines against one pymongo collection."""
    
    def __init__(self, collection: AsyncCollection):
        self._collection = collection
    
    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        cursor = await self._collection.aggregate(pipeline)
        return await cursor.to_list()


def validate_collection_name(name: str) -> None:
    """Reject names MongoDB would refuse or that address internal collections.
    
    Raises:
        BadRequestError: If the name cannot be used
    """
    if not name or not name.strip():
        raise BadRequestError("Collection name must not be empty")
    if "$" in name or "\x00" in name:
        raise BadRequestError(f"Invalid collection name '{name}'")
    if name.startswith("system."):
        raise BadRequestError(f"Collection '{name}' is reserved")


def serialize_document(value: Any) -> Any:
    """Convert BSON-only values to JSON-friendly ones, recursively."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value


async def list_documents(
    collection_name: str,
    request: PaginationRequest
) -> PageResult:
    """List one page of documents from a collection.
    
    Args:
        collection_name: Collection to query
        request: Pagination options
        
    Returns:
        The requested page with ObjectIds rendered as strings
        
    Raises:
        BadRequestError: If the collection name is invalid
        PyMongoError: If the query fails, unchanged
        BSONError: If the pipeline cannot be encoded, unchanged
    """
    validate_collection_name(collection_name)
    collection = await get_collection(collection_name)
    
    try:
        page = await paginate(MongoAggregateExecutor(collection), request)
    except (PyMongoError, BSONError) as e:
        logger.error(f"Storage error listing documents from '{collection_name}': {e}")
        raise
    
    logger.info(
        f"Listed {len(page.records)} of {page.total} documents from '{collection_name}' "
        f"(page {page.page}, max {page.max})"
    )
    return page.model_copy(update={"records": serialize_document(page.records)})
