from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90, description="Latitude in degrees.")
    longitude: float = Field(ge=-180, le=180, description="Longitude in degrees.")


class LocationSource(str, Enum):
    PROFILE = "profile"  # Stored in the user's latest profile
    DEVICE = "device"  # Live fix reported by the phone
    DEFAULT = "default"  # Fixed fallback when the fix itself failed


class LocationPermission(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


class LocationAccuracy(str, Enum):
    LOW = "low"
    BALANCED = "balanced"
    HIGH = "high"


class ResolvedLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates
    source: LocationSource


class DeviceLocationReport(BaseModel):
    """What the mobile client knows about its own geolocation."""

    location_permission: LocationPermission = Field(
        default=LocationPermission.DENIED,
        description="Outcome of the foreground location permission prompt.",
    )
    device_location: Optional[Coordinates] = Field(
        default=None,
        description="Single position fix taken by the device, if any.",
    )


class UserProfile(BaseModel):
    id: str = Field(
        default_factory=lambda: uuid4().hex,
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="_id",
    )
    user_id: Optional[str] = Field(default=None)
    name: str = Field(...)
    phone: str = Field(...)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)
