from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from kisansetu.core.security import verify_jwt
from kisansetu.models.weather import PlaceName, WeatherSummary
from kisansetu.services.weather_service import get_current_weather, get_place_name

router = APIRouter(prefix="/weather", tags=["Weather"], dependencies=[Depends(verify_jwt)])


@router.get("/current", response_model=WeatherSummary)
async def get_current_weather_data(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude"),
):
    """
    Get current weather data for a specific location.
    """
    weather = await get_current_weather(lat, lon)
    if not weather:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not fetch weather data",
        )
    return weather


@router.get("/place", response_model=PlaceName)
async def get_place(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude"),
    name: Optional[str] = Query(default=None, description="Profile name for the fallback label"),
):
    """
    Get a single readable place name for coordinates (Reverse Geocoding).
    """
    return PlaceName(name=await get_place_name(lat, lon, profile_name=name))
