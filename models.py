"""Pydantic models for Swiss Ephemeris API request/response validation."""

from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints
from pydantic import ConfigDict

# ISO 8601 datetime; whitespace-only strings are rejected
DatetimeStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _latitude(description: str = "Latitude in decimal degrees (-90 to 90)"):
    return Field(..., ge=-90, le=90, description=description)


def _longitude(description: str = "Longitude in decimal degrees, positive east (-180 to 180)"):
    return Field(..., ge=-180, le=180, description=description)


def _datetime(description: str = "ISO 8601 datetime, e.g. 1985-04-12T23:20:50Z"):
    return Field(..., description=description)


# Request Models
class PlanetaryPositionsRequest(BaseModel):
    """Request model for a single chart."""
    datetime: DatetimeStr = _datetime()
    latitude: float = _latitude()
    longitude: float = _longitude()

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "datetime": "1985-04-12T23:20:50Z",
                "latitude": 40.7128,
                "longitude": -74.0060
            }]
        }
    )


class TransitsRequest(BaseModel):
    """Request model for transits to a natal chart."""
    birth_datetime: DatetimeStr = _datetime("Birth datetime in ISO 8601 format")
    latitude: float = _latitude()
    longitude: float = _longitude()

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "birth_datetime": "1990-06-15T18:30:00Z",
                "latitude": 40.7128,
                "longitude": -74.0060
            }]
        }
    )


class SolarRevolutionRequest(BaseModel):
    """Request model for a solar return chart."""
    birth_datetime: DatetimeStr = _datetime("Birth datetime in ISO 8601 format")
    birth_latitude: float = _latitude("Birth latitude in decimal degrees")
    birth_longitude: float = _longitude("Birth longitude in decimal degrees, positive east")
    return_year: int = Field(..., ge=1900, le=2100, description="Year of the solar return")
    return_latitude: Optional[float] = Field(
        None, ge=-90, le=90,
        description="Latitude where the return is cast (defaults to birth latitude)"
    )
    return_longitude: Optional[float] = Field(
        None, ge=-180, le=180,
        description="Longitude where the return is cast (defaults to birth longitude)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "birth_datetime": "1990-06-15T18:30:00Z",
                "birth_latitude": 40.7128,
                "birth_longitude": -74.0060,
                "return_year": 2025,
                "return_latitude": 51.5074,
                "return_longitude": -0.1278
            }]
        }
    )


class SynastryRequest(BaseModel):
    """Request model for synastry between two people."""
    person1_datetime: DatetimeStr = _datetime("Person 1 birth datetime in ISO 8601 format")
    person1_latitude: float = _latitude()
    person1_longitude: float = _longitude()
    person2_datetime: DatetimeStr = _datetime("Person 2 birth datetime in ISO 8601 format")
    person2_latitude: float = _latitude()
    person2_longitude: float = _longitude()

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "person1_datetime": "1990-06-15T18:30:00Z",
                "person1_latitude": 40.7128,
                "person1_longitude": -74.0060,
                "person2_datetime": "1988-11-02T07:45:00Z",
                "person2_latitude": 51.5074,
                "person2_longitude": -0.1278
            }]
        }
    )


# Response Models
class ChartPointData(BaseModel):
    """Position on the ecliptic."""
    longitude: float
    sign: str
    degree: float


class CoordinatesData(BaseModel):
    latitude: float
    longitude: float


class ChartResponse(BaseModel):
    """Complete chart."""
    planets: dict[str, ChartPointData]
    houses: dict[int, ChartPointData]
    chart_points: dict[str, ChartPointData]
    additional_points: dict[str, ChartPointData]
    datetime: str
    coordinates: CoordinatesData


class AspectData(BaseModel):
    """Aspect between a planet of person 1 and a planet of person 2."""
    person1_planet: str
    person2_planet: str
    aspect_type: str
    orb: float
    exact_angle: float
    person1_position: ChartPointData
    person2_position: ChartPointData


class TransitsResponse(BaseModel):
    natal_chart: ChartResponse
    current_transits: ChartResponse
    transit_aspects: list[AspectData]
    calculation_time: str


class SolarRevolutionResponse(BaseModel):
    natal_chart: ChartResponse
    solar_return_chart: ChartResponse
    natal_sun_longitude: float
    return_sun_longitude: float
    return_datetime: str
    calculation_time: str


class SynastryResponse(BaseModel):
    person1_chart: ChartResponse
    person2_chart: ChartResponse
    synastry_aspects: list[AspectData]
    calculation_time: str


class AspectDefinitionResponse(BaseModel):
    """Aspect definition with orb."""
    name: str
    symbol: str
    angle: float
    orb: float


class ConfigAspectsResponse(BaseModel):
    """Configuration response for aspects."""
    aspects: list[AspectDefinitionResponse]


class ErrorDetail(BaseModel):
    """Error body returned by the exception handlers."""
    error: str
    message: str
    detail: Optional[str | list | dict] = None
