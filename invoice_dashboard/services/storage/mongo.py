"""
MongoDB connection handle.

Created once at application start (see the FastAPI lifespan in api/main.py),
handed to the stores that need it, and closed on shutdown. Nothing here is a
module-level global.
"""

import time
from typing import Optional

from loguru import logger
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ...core.config import Settings


class MongoConnectionError(RuntimeError):
    """Raised when the initial connection cannot be established"""


class MongoConnection:
    def __init__(self, settings: Settings, client_factory=MongoClient, sleep=time.sleep):
        self.settings = settings
        self._client_factory = client_factory
        self._sleep = sleep
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None

    def connect(self) -> Database:
        """
        Connect and verify the server answers a ping.

        Retries with a fixed delay, `mongo_connect_retries` times after the
        first attempt, then gives up with MongoConnectionError.
        """
        if self._db is not None:
            return self._db

        max_retries = self.settings.mongo_connect_retries
        delay = self.settings.mongo_retry_delay_seconds
        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 2):
            logger.info(f"Connecting to MongoDB (attempt {attempt}/{max_retries + 1})")
            client = None
            try:
                client = self._client_factory(
                    self.settings.mongodb_uri,
                    serverSelectionTimeoutMS=10_000,
                    connectTimeoutMS=10_000,
                    socketTimeoutMS=30_000,
                    maxPoolSize=self.settings.mongo_max_pool_size,
                    minPoolSize=self.settings.mongo_min_pool_size,
                    tz_aware=True,
                )
                client.admin.command("ping")
            except PyMongoError as e:
                last_error = e
                logger.warning(f"MongoDB connection attempt {attempt} failed: {e}")
                if client is not None:
                    client.close()
                if attempt <= max_retries:
                    logger.info(f"Retrying in {delay}s...")
                    self._sleep(delay)
                continue

            self._client = client
            if self.settings.mongodb_db:
                self._db = client[self.settings.mongodb_db]
            else:
                self._db = client.get_default_database(default="pdf-dashboard")
            logger.info("MongoDB connected", database=self._db.name)
            return self._db

        raise MongoConnectionError(
            f"Failed to connect to MongoDB after {max_retries + 1} attempts: {last_error}"
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._db = None
