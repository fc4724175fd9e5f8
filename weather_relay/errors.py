"""Exception hierarchy shared by the relay components."""
from __future__ import annotations


class WeatherRelayError(RuntimeError):
    """Base class for every error raised by the relay."""


class ImproperlyConfigured(WeatherRelayError):
    """Raised when configuration is missing or invalid."""


__all__ = ["WeatherRelayError", "ImproperlyConfigured"]
