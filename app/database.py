import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import Settings

logger = logging.getLogger(__name__)


def connect(settings: Settings):
    """Open a Motor client for the configured store. Caller owns the client."""
    client = AsyncIOMotorClient(settings.MONGO_URI, tz_aware=True)
    db: AsyncIOMotorDatabase = client[settings.MONGO_DB]
    logger.info(f"MongoDB client created for database {settings.MONGO_DB}")
    return client, db


def close_connections(client: AsyncIOMotorClient):
    client.close()
    logger.info("MongoDB client closed")
