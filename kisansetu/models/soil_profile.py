from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SoilProfileSource(str, Enum):
    LLM = "LLM"  # Parsed from the model reply (missing fields backfilled)
    REGION_HEURISTIC = "RegionHeuristic"  # Fixed India profile from the bounding box
    GENERIC_DEFAULT = "GenericDefault"  # Fixed profile for anywhere else


SOIL_PROFILE_TEXT_FIELDS = (
    "country",
    "region",
    "soil_type",
    "ph",
    "clay",
    "sand",
    "silt",
    "nitrogen",
    "climate",
    "description",
)


class SoilProfile(BaseModel):
    """
    Soil and climate description for a coordinate.
    Values are human readable and keep their units inline ("6.5-7.0", "35%").
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    country: str = Field(min_length=1)
    region: str = Field(min_length=1)
    soil_type: str = Field(
        min_length=1,
        validation_alias=AliasChoices("soil_type", "soilType"),
        serialization_alias="soilType",
    )
    ph: str = Field(min_length=1, description="pH range, e.g. '6.5-7.0'.")
    clay: str = Field(min_length=1, description="Clay share, e.g. '35%'.")
    sand: str = Field(min_length=1)
    silt: str = Field(min_length=1)
    nitrogen: str = Field(min_length=1)
    climate: str = Field(min_length=1)
    description: str = Field(min_length=1)
    source: SoilProfileSource
