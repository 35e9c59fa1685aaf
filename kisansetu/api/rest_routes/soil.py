from fastapi import APIRouter, Depends, Query

from kisansetu.api.dependencies import get_soil_resolver
from kisansetu.core.security import verify_jwt
from kisansetu.models.location import Coordinates
from kisansetu.models.soil_profile import SoilProfile
from kisansetu.services.soil_profile_service import SoilProfileResolver

router = APIRouter(tags=["Soil"], dependencies=[Depends(verify_jwt)])


@router.get("/soil-profile", response_model=SoilProfile)
async def get_soil_profile(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude"),
    resolver: SoilProfileResolver = Depends(get_soil_resolver),
):
    """
    Soil profile for a location. Never fails: when the model cannot answer,
    a regional or generic profile is returned and `source` says which.
    """
    return await resolver.resolve(Coordinates(latitude=lat, longitude=lon))
