"""Runtime configuration for the weather relay.

Settings are read once at startup, either from the environment or from a YAML
file, and handed to the pipeline as an immutable value.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import yaml

from weather_relay.errors import ImproperlyConfigured

ONECALL_URL_PREFIX = "https://api.openweathermap.org/data/2.5/onecall?exclude=minutely,hourly,daily,alerts&"
DEFAULT_TOPIC = "iot.weather"
DEFAULT_POLL_INTERVAL = 120.0
DEFAULT_HTTP_TIMEOUT = 10.0
TEMPERATURE_UNITS = ("kelvin", "celsius", "fahrenheit")

# Environment variable -> YAML key
_YAML_KEYS = {
    "OPENWEATHER_KEY": "apikey",
    "OPENWEATHER_LAT": "lat",
    "OPENWEATHER_LON": "lon",
    "OPENWEATHER_URL": "url",
    "ZIPCODE": "zipcode",
    "NATS_SERVER": "natsServer",
    "NATS_TOPIC": "natsTopic",
    "POLL_INTERVAL_SECONDS": "pollInterval",
    "HTTP_TIMEOUT_SECONDS": "httpTimeout",
    "TEMPERATURE_UNIT": "temperatureUnit",
    "LOG_LEVEL": "logLevel",
}


def env(name: str, default: str | None = None, source: Optional[Mapping[str, str]] = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    environ = os.environ if source is None else source
    value = environ.get(name) or default
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


def build_onecall_url(api_key: str, latitude: str, longitude: str) -> str:
    """Compose the one-call URL restricted to current conditions."""

    return ONECALL_URL_PREFIX + urlencode({"lat": latitude, "lon": longitude, "APPID": api_key})


@dataclass(frozen=True)
class Settings:
    openweather_url: str
    nats_server: str
    nats_topic: str = DEFAULT_TOPIC
    zip_code: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    temperature_unit: str = "kelvin"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ImproperlyConfigured("poll interval must be positive")
        if self.http_timeout <= 0:
            raise ImproperlyConfigured("HTTP timeout must be positive")
        if self.temperature_unit not in TEMPERATURE_UNITS:
            raise ImproperlyConfigured(
                f"Unsupported temperature unit {self.temperature_unit!r}, expected one of {', '.join(TEMPERATURE_UNITS)}"
            )

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "Settings":
        """Build settings from a mapping keyed by environment variable names."""

        url = values.get("OPENWEATHER_URL")
        if not url:
            url = build_onecall_url(
                api_key=env("OPENWEATHER_KEY", source=values),
                latitude=env("OPENWEATHER_LAT", source=values),
                longitude=env("OPENWEATHER_LON", source=values),
            )
        return cls(
            openweather_url=url,
            nats_server=env("NATS_SERVER", source=values),
            nats_topic=env("NATS_TOPIC", DEFAULT_TOPIC, source=values),
            zip_code=values.get("ZIPCODE", ""),
            poll_interval=_as_float("POLL_INTERVAL_SECONDS", values, DEFAULT_POLL_INTERVAL),
            http_timeout=_as_float("HTTP_TIMEOUT_SECONDS", values, DEFAULT_HTTP_TIMEOUT),
            temperature_unit=env("TEMPERATURE_UNIT", "kelvin", source=values).lower(),
            log_level=env("LOG_LEVEL", "INFO", source=values).upper(),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls.from_mapping(os.environ)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML document using the camelCase keys."""

        try:
            with open(path, "r", encoding="utf-8") as handle:
                # every scalar stays a string, e.g. zipcode 01001
                document = yaml.load(handle, Loader=yaml.BaseLoader) or {}
        except OSError as exc:
            raise ImproperlyConfigured(f"Cannot read configuration file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ImproperlyConfigured(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(document, dict):
            raise ImproperlyConfigured(f"Configuration file {path} must contain a mapping")
        return cls.from_mapping(_flatten_yaml(document))


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Return settings from ``config_path`` or ``WEATHER_RELAY_CONFIG`` if set, else the environment."""

    path = config_path or os.environ.get("WEATHER_RELAY_CONFIG")
    if path:
        return Settings.from_yaml(path)
    return Settings.from_env()


def _flatten_yaml(document: Mapping[str, Any]) -> dict[str, str]:
    values: dict[str, str] = {}
    for env_name, yaml_key in _YAML_KEYS.items():
        value = document.get(yaml_key)
        if value is not None:
            values[env_name] = str(value)
    return values


def _as_float(name: str, values: Mapping[str, str], default: float) -> float:
    raw = values.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ImproperlyConfigured(f"{name} must be a number, got {raw!r}") from exc


__all__ = ["Settings", "build_onecall_url", "env", "load_settings"]
