"""MongoDB connection handle with an explicit connect/close lifecycle."""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from config import Settings

logger = logging.getLogger(__name__)

EXPENSES_COLLECTION = "expenses"


class Database:
    """
    Owns the Motor client for the lifetime of the process.

    Constructed once at startup, opened by ``connect()`` and released by
    ``close()``. A pre-built client may be handed in (tests use an in-memory one).
    """

    def __init__(
        self,
        uri: Optional[str],
        name: str,
        client: Optional[AsyncIOMotorClient] = None,
        server_selection_timeout_ms: int = 5000,
        socket_timeout_ms: int = 45000,
    ) -> None:
        self._uri = uri
        self._name = name
        self._client = client
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._socket_timeout_ms = socket_timeout_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.mongodb_uri,
            settings.db_name,
            server_selection_timeout_ms=settings.server_selection_timeout_ms,
            socket_timeout_ms=settings.socket_timeout_ms,
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def expenses(self) -> AsyncIOMotorCollection:
        if self._client is None:
            raise ConnectionError("Database is not connected.")
        return self._client[self._name][EXPENSES_COLLECTION]

    async def connect(self) -> None:
        """Creates the client if needed and pings the server; raises if it is unreachable."""
        if self._client is None:
            if not self._uri:
                raise ConnectionError("MONGODB_URI is not set in the environment variables.")
            logger.info(f"Connecting to MongoDB database '{self._name}'...")
            self._client = AsyncIOMotorClient(
                self._uri,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                socketTimeoutMS=self._socket_timeout_ms,
            )
        try:
            await self._client.admin.command("ping")
        except Exception:
            self._client.close()
            self._client = None
            raise
        logger.info(f"MongoDB ping successful, using database '{self._name}'.")

    async def close(self) -> None:
        if self._client is not None:
            logger.info("Closing MongoDB connection...")
            self._client.close()
            self._client = None
            logger.info("MongoDB connection closed.")
