"""Normalized weather record published on the bus."""
from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt

__all__ = ["Location", "NormalizedWeather", "Number", "Precipitation"]

# integers from upstream (timestamps, pressure, visibility) stay integers
Number = Union[StrictInt, float]


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    zip: str = ""


class Precipitation(BaseModel):
    """Rain or snow volume in millimetres over the last one and three hours."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    one_hour: Optional[Number] = Field(default=None, alias="1h")
    three_hours: Optional[Number] = Field(default=None, alias="3h")


class NormalizedWeather(BaseModel):
    """Current conditions in the relay's own schema.

    Every scalar is optional; humidity and clouds are fractions in ``[0, 1]``.
    Temperatures are in the unit the relay was configured with (Kelvin unless
    overridden).
    """

    model_config = ConfigDict(frozen=True)

    dt: Optional[Number] = None
    temp: Optional[Number] = None
    feels_like: Optional[Number] = None
    uvi: Optional[Number] = None
    pressure: Optional[Number] = None
    humidity: Optional[Number] = None
    sunrise: Optional[Number] = None
    sunset: Optional[Number] = None
    clouds: Optional[Number] = None
    wind_deg: Optional[Number] = None
    wind_speed: Optional[Number] = None
    dew_point: Optional[Number] = None
    visibility: Optional[Number] = None
    location: Location
    descriptions: List[str] = Field(default_factory=list)
    rain: Precipitation = Field(default_factory=Precipitation)
    snow: Precipitation = Field(default_factory=Precipitation)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
