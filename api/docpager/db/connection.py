"""MongoDB connection utilities for docpager."""

from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from ..config import get_settings


class MongoManager:
    """Manages the MongoDB client used by the HTTP service."""
    
    def __init__(self, url: Optional[str] = None, database: Optional[str] = None):
        settings = get_settings()
        self.client: Optional[AsyncMongoClient] = None
        self._url = url or settings.mongodb_url
        self._database_name = database or settings.mongodb_database
        self._server_selection_timeout_ms = settings.mongodb_server_selection_timeout_ms
    
    async def initialize(self) -> None:
        """Create the client if it does not exist yet."""
        if self.client is None:
            self.client = AsyncMongoClient(
                self._url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                tz_aware=True
            )
    
    async def close(self) -> None:
        """Close the client."""
        if self.client is not None:
            await self.client.close()
            self.client = None
    
    async def ping(self) -> None:
        """Round-trip to the server; raises the driver error when unreachable."""
        database = await self.get_database()
        await database.command("ping")
    
    async def get_database(self) -> AsyncDatabase:
        if self.client is None:
            await self.initialize()
        return self.client[self._database_name]
    
    async def get_collection(self, name: str) -> AsyncCollection:
        database = await self.get_database()
        return database[name]


# Global manager instance for the HTTP service
mongo_manager = MongoManager()


async def get_collection(name: str) -> AsyncCollection:
    """Get a collection from the service database."""
    return await mongo_manager.get_collection(name)
