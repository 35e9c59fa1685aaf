from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from kisansetu.collections.user_profile import get_latest_user_profile, save_user_profile
from kisansetu.core.security import verify_jwt
from kisansetu.models.location import UserProfile

router = APIRouter(prefix="/profiles", tags=["User Profile"])


class CreateUserProfileRequest(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


@router.post(
    "/",
    response_model=UserProfile,
    status_code=status.HTTP_201_CREATED,
    response_model_exclude_none=True,
)
async def create_user_profile(
    request: CreateUserProfileRequest, user_payload: dict = Depends(verify_jwt)
):
    """
    Stores a new profile for the authenticated user. The most recent profile
    with coordinates is the first source for advisory locations.
    """
    profile = UserProfile(user_id=user_payload.get("sub"), **request.model_dump())
    return await save_user_profile(profile)


@router.get("/latest", response_model=UserProfile, response_model_exclude_none=True)
async def get_latest_profile(user_payload: dict = Depends(verify_jwt)):
    profile = await get_latest_user_profile(user_payload.get("sub"))
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found"
        )
    return profile
