from typing import Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)

from kisansetu.core.config import settings

USER_PROFILE_COLLECTION = "user_profiles"

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


def _ensure_database() -> AsyncIOMotorDatabase:
    global _client, _database
    if _client is None:
        # The direct URI skips SRV lookup where DNS is restricted.
        _client = AsyncIOMotorClient(
            settings.MONGO_DIRECT_URI or settings.MONGO_URI,
            uuidRepresentation="standard",
        )
    if _database is None:
        _database = _client[settings.MONGO_DB_NAME]
    return _database


async def init_mongo_client() -> None:
    _ensure_database()


async def close_mongo_client() -> None:
    global _client, _database
    if _client is not None:
        _client.close()
    _client, _database = None, None


def get_user_profile_collection() -> AsyncIOMotorCollection:
    return _ensure_database()[USER_PROFILE_COLLECTION]
