import logging
import threading
from typing import Any, Callable, Optional

from fastapi import Request
from pymongo import MongoClient
from pymongo.database import Database

from ..errors import DatabaseConnectionError, error_code

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Owns the single MongoClient used by every request.

    The client is created lazily by ensure_connected() and kept for the
    lifetime of the app; only close() tears it down.
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        server_selection_timeout_ms: Optional[int] = None,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self.uri = uri
        self.db_name = db_name
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def client_initialized(self) -> bool:
        return self._client is not None

    @property
    def database(self) -> Database:
        if self._db is None:
            raise DatabaseConnectionError("Not connected to MongoDB")
        return self._db

    def ensure_connected(self) -> Database:
        """Connect on first use; later calls return the existing handle."""
        if self._db is not None:
            return self._db
        with self._lock:
            if self._db is not None:
                return self._db
            logger.info("Connecting to MongoDB...")
            kwargs = {}
            if self.server_selection_timeout_ms is not None:
                kwargs["serverSelectionTimeoutMS"] = self.server_selection_timeout_ms
            client = None
            try:
                client = self._client_factory(self.uri, **kwargs)
                # MongoClient connects in the background; ping forces server selection
                client.admin.command("ping")
            except Exception as e:
                logger.error("MongoDB connection error: %s", e)
                if client is not None:
                    _close_quietly(client)
                raise DatabaseConnectionError(str(e) or e.__class__.__name__, code=error_code(e)) from e
            self._client = client
            self._db = client[self.db_name]
            logger.info("Connected to MongoDB (database: %s)", self.db_name)
            return self._db

    def ping(self) -> dict:
        client = self._client
        if client is None or self._db is None:
            raise DatabaseConnectionError("Not connected to MongoDB")
        return client.admin.command("ping")

    def close(self) -> bool:
        with self._lock:
            client = self._client
            self._client = None
            self._db = None
        if client is None:
            return False
        _close_quietly(client)
        logger.info("MongoDB connection closed")
        return True


def _close_quietly(client: Any) -> None:
    try:
        client.close()
    except Exception as e:
        logger.warning("Failed to close MongoDB client: %s", e)


def get_conn_mgr(request: Request) -> ConnectionManager:
    """FastAPI dependency: the connection manager owned by the running app."""
    return request.app.state.conn_mgr
