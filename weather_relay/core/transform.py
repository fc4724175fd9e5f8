"""Map the OpenWeather one-call payload onto :class:`NormalizedWeather`.

Only the ``current`` object and the top-level coordinates are read. Scalars
are decoded one at a time, so a missing or mistyped key only drops that
field. The coordinates are the exception: without them the record cannot be
located and :class:`SchemaError` is raised.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from weather_relay.core.schemas import Location, NormalizedWeather, Number, Precipitation
from weather_relay.errors import WeatherRelayError

logger = logging.getLogger(__name__)

# upstream key -> divisor applied to the value
SCALAR_FIELDS: Dict[str, int] = {
    "dt": 1,
    "temp": 1,
    "feels_like": 1,
    "uvi": 1,
    "pressure": 1,
    "humidity": 100,
    "sunrise": 1,
    "sunset": 1,
    "clouds": 100,
    "wind_deg": 1,
    "wind_speed": 1,
    "dew_point": 1,
    "visibility": 1,
}
TEMPERATURE_FIELDS = ("temp", "feels_like", "dew_point")


class SchemaError(WeatherRelayError):
    """Raised when a required part of the upstream payload is missing."""


def kelvin_to_celsius(value: float) -> float:
    return value - 273.15


def kelvin_to_fahrenheit(value: float) -> float:
    return (value - 273.15) * 9 / 5 + 32


_CONVERTERS = {
    "kelvin": lambda value: value,
    "celsius": kelvin_to_celsius,
    "fahrenheit": kelvin_to_fahrenheit,
}


def _number(value: Any) -> Optional[Number]:
    # bool is an int subclass but never a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _descriptions(current: Mapping[str, Any]) -> List[str]:
    entries = current.get("weather")
    if not isinstance(entries, list):
        return []
    descriptions = []
    for entry in entries:
        if isinstance(entry, Mapping) and isinstance(entry.get("description"), str):
            descriptions.append(entry["description"])
    return descriptions


def _precipitation(value: Any) -> Precipitation:
    if not isinstance(value, Mapping):
        return Precipitation()
    return Precipitation(one_hour=_number(value.get("1h")), three_hours=_number(value.get("3h")))


def _location(payload: Mapping[str, Any], zip_code: str) -> Location:
    lat = _number(payload.get("lat"))
    lon = _number(payload.get("lon"))
    if lat is None or lon is None:
        raise SchemaError("payload must carry numeric top-level 'lat' and 'lon'")
    return Location(lat=lat, lon=lon, zip=zip_code)


def transform(payload: Mapping[str, Any], zip_code: str, temperature_unit: str = "kelvin") -> NormalizedWeather:
    """Build a :class:`NormalizedWeather` from a parsed one-call payload."""

    logger.debug("Transforming upstream payload: %s", payload)
    current = payload.get("current")
    if not isinstance(current, Mapping):
        raise SchemaError("payload has no 'current' object")
    try:
        convert = _CONVERTERS[temperature_unit]
    except KeyError:
        raise ValueError(f"Unsupported temperature unit {temperature_unit!r}") from None

    fields: Dict[str, Any] = {}
    for key, divisor in SCALAR_FIELDS.items():
        value = _number(current.get(key))
        if value is None:
            continue
        fields[key] = value / divisor if divisor != 1 else value

    kelvin = fields.get("temp")
    if kelvin is not None:
        logger.info("Current temperature %.1f°F", kelvin_to_fahrenheit(kelvin))
    for key in TEMPERATURE_FIELDS:
        if key in fields:
            fields[key] = convert(fields[key])

    return NormalizedWeather(
        **fields,
        location=_location(payload, zip_code),
        descriptions=_descriptions(current),
        rain=_precipitation(current.get("rain")),
        snow=_precipitation(current.get("snow")),
    )


def serialize(weather: NormalizedWeather) -> bytes:
    """Compact JSON bytes with absent fields omitted."""
    return weather.to_json()


def parse(data: bytes | str) -> NormalizedWeather:
    return NormalizedWeather.model_validate_json(data)


__all__ = ["SchemaError", "kelvin_to_fahrenheit", "parse", "serialize", "transform"]
