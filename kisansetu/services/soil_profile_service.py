import json
import logging
import re
from typing import Any, Optional

from langchain_core.prompts import PromptTemplate

from kisansetu.core.exceptions import InferenceUnavailable, MalformedModelOutput
from kisansetu.core.genai_client import get_soil_model
from kisansetu.core.langchain_message_adapter import model_reply_text
from kisansetu.models.location import Coordinates
from kisansetu.models.soil_profile import (
    SOIL_PROFILE_TEXT_FIELDS,
    SoilProfile,
    SoilProfileSource,
)
from kisansetu.prompts.soil_profile_prompt import (
    SOIL_PROFILE_PROMPT,
    SOIL_PROFILE_SYSTEM_PROMPT,
)
from kisansetu.services.text_generation import TextGenerationClient

logger = logging.getLogger(__name__)

# Approximate bounding box for India: (min_lat, max_lat, min_lon, max_lon)
INDIA_BOUNDS = (8.0, 37.0, 68.0, 97.0)

REGION_HEURISTIC_FIELDS = {
    "country": "India",
    "region": "Indian subcontinent",
    "soil_type": "Alluvial Clay Loam",
    "ph": "6.5-7.5",
    "clay": "35%",
    "sand": "30%",
    "silt": "35%",
    "nitrogen": "Medium (280-560 kg/ha)",
    "climate": "Tropical monsoon",
    "description": (
        "Fertile alluvial clay loam common across Indian river plains, "
        "suited to rice, wheat, sugarcane and pulses."
    ),
}

GENERIC_DEFAULT_FIELDS = {
    "country": "Unknown",
    "region": "Unknown",
    "soil_type": "Mixed Soil",
    "ph": "6.0-7.5",
    "clay": "25%",
    "sand": "40%",
    "silt": "35%",
    "nitrogen": "Medium",
    "climate": "Temperate",
    "description": (
        "General mixed soil estimate; a local soil test is recommended "
        "before major fertilizer decisions."
    ),
}

# Normalized model keys -> SoilProfile field names.
_FIELD_KEYS = {
    "country": "country",
    "region": "region",
    "state": "region",
    "soiltype": "soil_type",
    "soil": "soil_type",
    "ph": "ph",
    "phrange": "ph",
    "clay": "clay",
    "sand": "sand",
    "silt": "silt",
    "nitrogen": "nitrogen",
    "climate": "climate",
    "description": "description",
}


def is_in_india(coords: Coordinates) -> bool:
    min_lat, max_lat, min_lon, max_lon = INDIA_BOUNDS
    return (
        min_lat <= coords.latitude <= max_lat
        and min_lon <= coords.longitude <= max_lon
    )


def default_soil_fields(coords: Coordinates) -> tuple[dict[str, str], SoilProfileSource]:
    if is_in_india(coords):
        return REGION_HEURISTIC_FIELDS, SoilProfileSource.REGION_HEURISTIC
    return GENERIC_DEFAULT_FIELDS, SoilProfileSource.GENERIC_DEFAULT


def fallback_soil_profile(coords: Coordinates) -> SoilProfile:
    fields, source = default_soil_fields(coords)
    return SoilProfile(**fields, source=source)


def _find_balanced_objects(text: str):
    """Yields every brace-balanced ``{...}`` substring, scanning left to right."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]
                    break
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Parses a JSON object out of free model text.

    Tries a strict parse of the whole text first, then the first balanced
    ``{...}`` substring that parses to an object.

    Raises:
        MalformedModelOutput: if neither attempt yields a JSON object.
    """
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except (json.JSONDecodeError, TypeError):
        pass

    for candidate in _find_balanced_objects(text or ""):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise MalformedModelOutput("No JSON object found in model reply")


def _normalize_key(key: str) -> str:
    return re.sub(r"[^a-z]", "", key.lower())


def _coerce_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def profile_from_model_data(data: dict[str, Any], coords: Coordinates) -> SoilProfile:
    """
    Builds an LLM-sourced profile, backfilling missing or blank fields one by
    one from the default table for the coordinates.

    Raises:
        MalformedModelOutput: if the object carries none of the profile fields.
    """
    parsed: dict[str, str] = {}
    for key, value in data.items():
        field_name = _FIELD_KEYS.get(_normalize_key(str(key)))
        if field_name is None or field_name in parsed:
            continue
        coerced = _coerce_value(value)
        if coerced is not None:
            parsed[field_name] = coerced

    if not parsed:
        raise MalformedModelOutput("Model JSON has no soil profile fields")

    defaults, _ = default_soil_fields(coords)
    fields = {name: parsed.get(name) or defaults[name] for name in SOIL_PROFILE_TEXT_FIELDS}
    return SoilProfile(**fields, source=SoilProfileSource.LLM)


class SoilProfileResolver:
    """Resolves a soil/climate profile for coordinates; never raises."""

    def __init__(self, text_client: Optional[TextGenerationClient] = None) -> None:
        self.text_client = text_client or TextGenerationClient(
            model_factory=get_soil_model,
            system_prompt=SOIL_PROFILE_SYSTEM_PROMPT,
        )
        self._prompt = PromptTemplate.from_template(SOIL_PROFILE_PROMPT)

    def build_prompt(self, coords: Coordinates) -> str:
        return self._prompt.format(
            latitude=f"{coords.latitude:.4f}",
            longitude=f"{coords.longitude:.4f}",
        )

    async def resolve(self, coords: Coordinates) -> SoilProfile:
        try:
            reply = await self.text_client.generate(self.build_prompt(coords))
            data = extract_json_object(model_reply_text(reply))
            return profile_from_model_data(data, coords)
        except (InferenceUnavailable, MalformedModelOutput) as e:
            profile = fallback_soil_profile(coords)
            logger.warning(
                "Soil profile for (%s, %s) fell back to %s: %s",
                coords.latitude,
                coords.longitude,
                profile.source.value,
                e,
            )
            return profile
