import logging
from typing import Awaitable, Callable, Optional, Protocol

from kisansetu.core.exceptions import (
    LocationFixUnavailable,
    NoLocationAvailable,
    PermissionDenied,
)
from kisansetu.models.location import (
    Coordinates,
    DeviceLocationReport,
    LocationAccuracy,
    LocationPermission,
    LocationSource,
    ResolvedLocation,
    UserProfile,
)

logger = logging.getLogger(__name__)

# Guntur, Andhra Pradesh
DEFAULT_COORDINATES = Coordinates(latitude=16.2991, longitude=80.4575)

ProfileLookup = Callable[[], Awaitable[Optional[UserProfile]]]


class DeviceLocationProvider(Protocol):
    async def request_permission(self) -> LocationPermission: ...

    async def get_current_position(self, accuracy: LocationAccuracy) -> Coordinates: ...


class ClientReportedLocation:
    """Device provider backed by what the mobile client sent with its request."""

    def __init__(self, report: DeviceLocationReport) -> None:
        self.report = report

    async def request_permission(self) -> LocationPermission:
        return self.report.location_permission

    async def get_current_position(self, accuracy: LocationAccuracy) -> Coordinates:
        if self.report.device_location is None:
            raise LocationFixUnavailable("Device did not report a position fix")
        return self.report.device_location


class GeoResolver:
    """
    Resolves the user's coordinates: stored profile first, then a live device
    fix, then the fixed default when the fix itself fails.

    A denied permission is terminal and raises NoLocationAvailable.
    """

    def __init__(
        self,
        device: DeviceLocationProvider,
        profile_lookup: Optional[ProfileLookup] = None,
        default_coordinates: Coordinates = DEFAULT_COORDINATES,
    ) -> None:
        self.device = device
        self.profile_lookup = profile_lookup
        self.default_coordinates = default_coordinates

    async def _from_profile(self) -> Optional[Coordinates]:
        if self.profile_lookup is None:
            return None
        try:
            profile = await self.profile_lookup()
        except Exception:
            logger.exception("User profile lookup failed; trying device location")
            return None
        return profile.coordinates if profile is not None else None

    async def resolve(self) -> ResolvedLocation:
        coordinates = await self._from_profile()
        if coordinates is not None:
            return ResolvedLocation(coordinates=coordinates, source=LocationSource.PROFILE)

        permission = await self.device.request_permission()
        if permission != LocationPermission.GRANTED:
            raise NoLocationAvailable(
                "No stored location and device location was not granted"
            ) from PermissionDenied("location")

        try:
            coordinates = await self.device.get_current_position(LocationAccuracy.BALANCED)
        except Exception as e:
            logger.warning("Device position fix failed, using default location: %s", e)
            return ResolvedLocation(
                coordinates=self.default_coordinates, source=LocationSource.DEFAULT
            )
        return ResolvedLocation(coordinates=coordinates, source=LocationSource.DEVICE)
