import logging
from urllib.parse import urlparse

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config.settings import settings

logger = logging.getLogger("db")

_client: AsyncIOMotorClient | None = None


def database_name(uri: str, fallback: str = "") -> str:
    """Database name from the URI path, else the configured fallback."""
    path = urlparse(uri).path.lstrip("/")
    name = path.split("/")[0] if path else ""
    return name or fallback or "mongodb-explorer"


def get_client() -> AsyncIOMotorClient:
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
        )
        logger.info("MongoDB client created for database %s", get_database_name())
    return _client


def get_database_name() -> str:
    return database_name(settings.MONGODB_URI, settings.MONGODB_DB_NAME)


def get_database() -> AsyncIOMotorDatabase:
    return get_client()[get_database_name()]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


async def get_db():
    yield get_database()
