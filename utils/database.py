"""MongoDB connection handle with an explicit open/close lifecycle."""
import logging
from typing import Optional

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# date desc for listing, category for filtering, createdAt desc for tie-breaks
EXPENSE_INDEXES = (
    [("date", pymongo.DESCENDING)],
    [("category", pymongo.ASCENDING)],
    [("createdAt", pymongo.DESCENDING)],
)


class MongoHandle:
    """Owns the Motor client and hands out the expenses collection.

    ``open()`` connects, pings the server and ensures indexes. If the server
    cannot be reached the handle stays closed and ``collection`` is ``None``,
    so callers can report the database as unavailable.
    """

    def __init__(self, uri: str, db_name: str, collection_name: str = "expenses",
                 server_selection_timeout_ms: int = 5000):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection_name
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client: Optional[AsyncIOMotorClient] = None
        self._collection: Optional[AsyncIOMotorCollection] = None

    @property
    def collection(self) -> Optional[AsyncIOMotorCollection]:
        return self._collection

    @property
    def is_open(self) -> bool:
        return self._collection is not None

    async def open(self) -> None:
        logger.info(f"Connecting to MongoDB database '{self.db_name}'...")
        client = AsyncIOMotorClient(self.uri, serverSelectionTimeoutMS=self.server_selection_timeout_ms)
        try:
            await client.admin.command("ping")
            collection = client[self.db_name].get_collection(self.collection_name)
            for keys in EXPENSE_INDEXES:
                await collection.create_index(keys)
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            client.close()
            return
        self._client = client
        self._collection = collection
        logger.info(f"Connected to MongoDB database: {self.db_name} (collection '{self.collection_name}')")

    def close(self) -> None:
        if self._client is not None:
            logger.info("Closing MongoDB connection...")
            self._client.close()
            logger.info("MongoDB connection closed.")
        self._client = None
        self._collection = None
