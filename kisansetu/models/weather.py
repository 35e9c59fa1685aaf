from typing import Optional

from pydantic import BaseModel, Field

# --- Open-Meteo forecast API ---


class OpenMeteoCurrentWeather(BaseModel):
    temperature: float = Field(description="Air temperature in °C.")
    windspeed: Optional[float] = None
    winddirection: Optional[float] = None
    weathercode: int = Field(description="WMO weather interpretation code.")
    is_day: Optional[int] = None
    time: Optional[str] = None


class OpenMeteoForecastResponse(BaseModel):
    latitude: float
    longitude: float
    timezone: Optional[str] = None
    current_weather: OpenMeteoCurrentWeather


class WeatherSummary(BaseModel):
    """Display-ready current weather."""

    temperature: str = Field(description="Rounded temperature, e.g. '28°C'.")
    condition: str
    weathercode: int


# --- Nominatim reverse geocoding ---


class NominatimAddress(BaseModel):
    town: Optional[str] = None
    village: Optional[str] = None
    suburb: Optional[str] = None
    neighbourhood: Optional[str] = None
    locality: Optional[str] = None
    city: Optional[str] = None
    municipality: Optional[str] = None
    county: Optional[str] = None
    state_district: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postcode: Optional[str] = None


class NominatimReverseResponse(BaseModel):
    display_name: Optional[str] = None
    address: Optional[NominatimAddress] = None


class PlaceName(BaseModel):
    name: str
