from fastapi import Depends

from kisansetu.collections.user_profile import get_latest_user_profile
from kisansetu.core.security import verify_jwt
from kisansetu.services.advisory_service import AdvisoryService, AdvisorySessionStore
from kisansetu.services.geo_resolver import ProfileLookup
from kisansetu.services.soil_profile_service import SoilProfileResolver

_session_store = AdvisorySessionStore()
_soil_resolver = SoilProfileResolver()
_advisory_service = AdvisoryService(soil_resolver=_soil_resolver)


def get_session_store() -> AdvisorySessionStore:
    return _session_store


def get_soil_resolver() -> SoilProfileResolver:
    return _soil_resolver


def get_advisory_service() -> AdvisoryService:
    return _advisory_service


def get_profile_lookup(user_payload: dict = Depends(verify_jwt)) -> ProfileLookup:
    user_id = user_payload.get("sub")

    async def _lookup():
        return await get_latest_user_profile(user_id)

    return _lookup
