"""
Motor client registry, one lazily opened client per connection label.
"""

import atexit
import threading

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import config


def hide_password(connection_string: str) -> str:
    """Mask the password of a MongoDB URL for logging."""
    scheme, sep, rest = connection_string.partition("://")
    credentials, at, host = rest.rpartition("@")
    if not sep or not at or ":" not in credentials:
        return connection_string

    username = credentials.split(":", 1)[0]
    return f"{scheme}://{username}:***@{host}"


class MongoManager:
    """
    Thread-safe singleton of Motor clients keyed by label.

    A label maps to the `MONGO_URL_<LABEL>` setting; unknown labels share the
    fallback connection string.
    """

    _instance = None
    _instance_lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if getattr(self, "_initialized", False):
            return

        self._clients: dict[str, AsyncIOMotorClient] = {}
        self._lock = threading.Lock()
        self._client_options = {
            "maxPoolSize": config.get_int("MONGO_MAX_POOL_SIZE", 5, high=100),
            "serverSelectionTimeoutMS": config.get_int("MONGO_SERVER_SELECTION_TIMEOUT", 30000),
            "connectTimeoutMS": config.get_int("MONGO_CONNECT_TIMEOUT", 30000),
        }

        atexit.register(self.close_all)
        self._initialized = True

    def get_client(self, label: str | None = None) -> AsyncIOMotorClient:
        label = (label or "default").lower()

        with self._lock:
            client = self._clients.get(label)
            if client is None:
                url = config.get_mongo_url(label)
                logger.info("Open MongoDB client '{}' -> {}", label, hide_password(url))
                client = AsyncIOMotorClient(url, **self._client_options)
                self._clients[label] = client
            return client

    def close_all(self):
        with self._lock:
            clients, self._clients = self._clients, {}

        for label, client in clients.items():
            client.close()
            logger.info("Closed MongoDB client '{}'", label)


def get_mongo_manager() -> MongoManager:
    return MongoManager()


def get_mongo_client(label: str | None = None) -> AsyncIOMotorClient:
    """Get MongoDB client by label."""
    return get_mongo_manager().get_client(label)
