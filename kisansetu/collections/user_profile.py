from typing import Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from kisansetu.core.mongodb import get_user_profile_collection
from kisansetu.models.location import UserProfile


async def save_user_profile(profile: UserProfile) -> UserProfile:
    profile_collection: AsyncIOMotorCollection = get_user_profile_collection()
    try:
        payload = profile.model_dump(mode="json", exclude_none=True, by_alias=True)
        payload["created_at"] = profile.created_at
        await profile_collection.insert_one(payload)
        response = await profile_collection.find_one({"_id": profile.id})
        return UserProfile.model_validate(response)
    except Exception:
        raise


async def get_latest_user_profile(user_id: Optional[str] = None) -> Optional[UserProfile]:
    profile_collection: AsyncIOMotorCollection = get_user_profile_collection()
    try:
        query = {"user_id": user_id} if user_id else {}
        cursor = profile_collection.find(query).sort("created_at", -1).limit(1)
        items = [item async for item in cursor]
        return UserProfile.model_validate(items[0]) if items else None
    except Exception:
        raise
