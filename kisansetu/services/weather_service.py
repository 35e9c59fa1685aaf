import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from kisansetu.core.config import settings
from kisansetu.models.location import Coordinates
from kisansetu.models.weather import (
    NominatimAddress,
    NominatimReverseResponse,
    OpenMeteoForecastResponse,
    WeatherSummary,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_HINT = "India"

PLACE_NAME_PRIORITY = (
    "town",
    "village",
    "suburb",
    "neighbourhood",
    "locality",
    "city",
    "municipality",
    "county",
    "state",
)


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)


def weather_condition(code: int) -> str:
    """Maps a WMO weather code to a short condition label."""
    if code == 0:
        return "Clear"
    if code <= 3:
        return "Partly Cloudy"
    if code <= 48:
        return "Foggy"
    if code <= 67:
        return "Rainy"
    if code <= 77:
        return "Snowy"
    if code <= 82:
        return "Rainy"
    if code <= 99:
        return "Stormy"
    return "Sunny"


async def get_current_weather(lat: float, lon: float) -> Optional[WeatherSummary]:
    """
    Fetches current weather from Open-Meteo for a given location.

    Args:
        lat: Latitude.
        lon: Longitude.

    Returns:
        A WeatherSummary or None if the request fails.
    """
    params = {
        "latitude": lat,
        "longitude": lon,
        "current_weather": "true",
        "temperature_unit": "celsius",
    }
    async with _http_client() as client:
        try:
            response = await client.get(settings.OPEN_METEO_URL, params=params)
            response.raise_for_status()
            forecast = OpenMeteoForecastResponse(**response.json())
        except httpx.HTTPError as e:
            logger.warning("Open-Meteo request failed for (%s, %s): %s", lat, lon, e)
            return None
        except (ValidationError, ValueError) as e:
            logger.warning("Unexpected Open-Meteo payload: %s", e)
            return None

    current = forecast.current_weather
    return WeatherSummary(
        temperature=f"{round(current.temperature)}°C",
        condition=weather_condition(current.weathercode),
        weathercode=current.weathercode,
    )


async def reverse_geocode(lat: float, lon: float) -> Optional[NominatimReverseResponse]:
    """
    Performs reverse geocoding through Nominatim.

    Returns:
        The parsed response or None if the request fails.
    """
    params = {
        "format": "json",
        "lat": lat,
        "lon": lon,
        "accept-language": "en",
        "zoom": 18,
        "addressdetails": 1,
    }
    headers = {"User-Agent": settings.NOMINATIM_USER_AGENT}
    async with _http_client() as client:
        try:
            response = await client.get(settings.NOMINATIM_URL, params=params, headers=headers)
            response.raise_for_status()
            return NominatimReverseResponse(**response.json())
        except httpx.HTTPError as e:
            logger.warning("Nominatim request failed for (%s, %s): %s", lat, lon, e)
            return None
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning("Unexpected Nominatim payload: %s", e)
            return None


def pick_place_name(address: Optional[NominatimAddress], fallback: str) -> str:
    """Most local single place name in the address, or `fallback`."""
    if address is None:
        return fallback
    for field_name in PLACE_NAME_PRIORITY:
        value = getattr(address, field_name)
        if value:
            return value
    return fallback


def location_hint_from_address(address: Optional[NominatimAddress]) -> str:
    if address is None:
        return DEFAULT_LOCATION_HINT
    parts = [
        address.county or address.state_district,
        address.state,
        address.country,
    ]
    hint = ", ".join([part for part in parts if part])
    return hint or DEFAULT_LOCATION_HINT


async def get_place_name(lat: float, lon: float, profile_name: Optional[str] = None) -> str:
    fallback = f"{profile_name}'s Location" if profile_name else "Unknown Location"
    geocoded = await reverse_geocode(lat, lon)
    return pick_place_name(geocoded.address if geocoded else None, fallback)


async def get_location_hint(coords: Optional[Coordinates]) -> str:
    """Readable "district, state, country" string for prompts; "India" when unknown."""
    if coords is None:
        return DEFAULT_LOCATION_HINT
    geocoded = await reverse_geocode(coords.latitude, coords.longitude)
    return location_hint_from_address(geocoded.address if geocoded else None)
