"""Connection manager for the MongoDB document store."""
from __future__ import annotations

from typing import Any, Optional

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from report_dashboard.config import StoreSettings
from report_dashboard.services.logging_service import logging_service


class StoreConnection:
    """Owns the MongoDB client and exposes a synchronously readable state.

    The adapter checks :attr:`connected` before every query. Reconnection is
    only attempted through :meth:`connect` or :meth:`ping`; a failing query
    does not flip the state, so every request tries the store again.
    """

    def __init__(self, settings: StoreSettings, client: Optional[Any] = None) -> None:
        self.settings = settings
        self._client = client
        self._connected = False
        self._logger = logging_service.get_logger(__name__)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def collection(self) -> Any:
        if self._client is None:
            raise RuntimeError("Store client has not been created")
        return self._client[self.settings.database][self.settings.collection]

    def _create_client(self) -> Any:
        return AsyncMongoClient(
            self.settings.uri,
            serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
            socketTimeoutMS=self.settings.socket_timeout_ms,
            maxPoolSize=self.settings.max_pool_size,
        )

    async def connect(self) -> bool:
        if not self.settings.enabled:
            self._logger.info("MongoDB disabled, serving from the file system only")
            self._connected = False
            return False
        if self._client is None:
            try:
                self._client = self._create_client()
            except PyMongoError as exc:
                self._logger.error("MongoDB client creation failed: %s", exc)
                self._connected = False
                return False
        connected = await self.ping()
        if connected:
            self._logger.info("MongoDB connected successfully")
        return connected

    async def ping(self) -> bool:
        if self._client is None:
            self._connected = False
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError as exc:
            self._logger.error("MongoDB connection failed: %s", exc)
            self._connected = False
        else:
            self._connected = True
        return self._connected

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.close()
        except PyMongoError as exc:
            self._logger.error("MongoDB disconnection failed: %s", exc)
        else:
            self._logger.info("MongoDB disconnected successfully")
        finally:
            self._client = None
            self._connected = False
