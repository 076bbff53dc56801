"""Pydantic models for Celestial Self API request/response validation."""

import re
from datetime import date
from enum import Enum
from typing import Optional

import pytz
from pydantic import BaseModel, Field, field_validator
from pydantic import ConfigDict

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


# Enums
class HouseSystemEnum(str, Enum):
    """Available house systems."""
    EQUAL = "equal"
    WHOLE_SIGN = "whole-sign"
    PLACIDUS = "placidus"
    KOCH = "koch"
    PORPHYRY = "porphyry"
    REGIOMONTANUS = "regiomontanus"
    CAMPANUS = "campanus"
    TOPOCENTRIC = "topocentric"
    ALCABITIUS = "alcabitius"
    MORINUS = "morinus"


# Request Models
class NatalChartRequest(BaseModel):
    """Request model for natal chart calculation."""

    birth_date: date = Field(
        ...,
        description="Birth date in ISO 8601 format",
        examples=["2000-01-01"]
    )
    birth_time: Optional[str] = Field(
        None,
        description="Birth time as HH:MM. Defaults to 12:00 when unknown."
    )
    latitude: Optional[float] = Field(
        None,
        ge=-90,
        le=90,
        description="Latitude in decimal degrees (-90 to 90)"
    )
    longitude: Optional[float] = Field(
        None,
        ge=-180,
        le=180,
        description="Longitude in decimal degrees (-180 to 180)"
    )
    place: Optional[str] = Field(
        None,
        description="Place name, resolved when coordinates are not given. Unknown places use (0, 0)."
    )
    house_system: Optional[HouseSystemEnum] = Field(
        None,
        description="House system to use for house cusps (defaults to server configuration)"
    )
    timezone: Optional[str] = Field(
        None,
        description="IANA timezone of the birth time. If not provided, the time is used as given."
    )

    @field_validator('birth_time')
    @classmethod
    def validate_birth_time(cls, v: Optional[str]) -> Optional[str]:
        """Validate HH:MM birth time."""
        if v is None or v == "":
            return None
        if not _TIME_RE.match(v):
            raise ValueError(f"Invalid birth time: {v} (expected HH:MM)")
        return v

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Validate timezone string."""
        if v is None:
            return v
        try:
            pytz.timezone(v)
            return v
        except pytz.exceptions.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "birth_date": "1990-06-15",
                "birth_time": "14:30",
                "latitude": 40.7128,
                "longitude": -74.0060,
                "house_system": "placidus",
            }]
        }
    )


class NatalChartRequestWithId(NatalChartRequest):
    """Natal chart request with optional ID for batch operations."""
    id: Optional[str] = Field(
        None,
        description="Optional identifier for this chart in batch operations"
    )


class NatalChartBatchRequest(BaseModel):
    """Request model for batch natal chart calculations."""
    charts: list[NatalChartRequestWithId] = Field(
        ...,
        description="List of natal charts to calculate"
    )


# Response Models
class MetadataResponse(BaseModel):
    """Metadata for natal chart."""
    birth_date: Optional[str]
    latitude: float
    longitude: float
    house_system: str
    house_system_used: str
    source: str
    julian_day: Optional[float] = None
    timezone: Optional[str] = None


class PlanetPosition(BaseModel):
    """Planet position data."""
    planet: str
    longitude: float
    sign: str
    sign_num: int
    degree: float
    house: int
    retrograde: bool
    formatted: str


class AspectData(BaseModel):
    """Aspect between two planets."""
    planet1: str
    planet2: str
    aspect: str
    symbol: str
    angle: float
    orb: float
    nature: str


class NatalChartResponse(BaseModel):
    """Complete natal chart response."""
    metadata: MetadataResponse
    sun_sign: str
    moon_sign: str
    rising_sign: str
    ascendant: float
    houses: list[float]
    positions: dict[str, PlanetPosition]
    aspects: list[AspectData]


class ErrorDetail(BaseModel):
    """Error detail for batch operations."""
    type: str
    message: str
    detail: Optional[dict] = None


class BatchResultItem(BaseModel):
    """Single result in a batch operation."""
    id: Optional[str]
    success: bool
    data: Optional[NatalChartResponse] = None
    error: Optional[ErrorDetail] = None


class BatchSummary(BaseModel):
    """Summary statistics for batch operation."""
    total: int
    successful: int
    failed: int


class BatchResponse(BaseModel):
    """Response for batch operations."""
    results: list[BatchResultItem]
    summary: BatchSummary


class AspectDefinitionResponse(BaseModel):
    """Aspect definition with orb."""
    name: str
    symbol: str
    angle: float
    orb: float
    nature: str


class ConfigAspectsResponse(BaseModel):
    """Configuration response for aspects."""
    aspects: list[AspectDefinitionResponse]


class ConfigHouseSystemsResponse(BaseModel):
    """Configuration response for house systems."""
    house_systems: list[str]
    default: str
