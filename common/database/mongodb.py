"""
Async MongoDB connection built on Motor.

Example:
    from common.database import MongoDB

    mongo = MongoDB()
    await mongo.connect("mongodb://localhost:27017", "spb_accounts")
    sessions = mongo.db["accountSessions"]
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def _mask_uri(uri: str) -> str:
    """Drop the credentials part of a connection string."""
    return uri.rsplit("@", 1)[-1] if "@" in uri else uri


class MongoDB:
    """Owns one Motor client and the database the service works in."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None

    async def connect(
        self,
        uri: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        """
        Open the client and fail fast if the server does not answer.

        Args:
            uri: MongoDB connection string
            database_name: Database holding the account snapshots
            server_selection_timeout_ms: How long the startup ping may wait
        """
        logger.info(f"Connecting to MongoDB at {_mask_uri(uri)} (database: {database_name})")

        client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=server_selection_timeout_ms)
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            logger.error(f"MongoDB did not answer: {e}")
            raise

        self._client = client
        self._database = client[database_name]

    async def disconnect(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._database = None
        logger.info("MongoDB connection closed")

    async def ping(self) -> bool:
        """True when the server currently answers; used by the health check."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._database
