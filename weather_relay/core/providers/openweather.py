"""OpenWeather one-call provider."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from weather_relay.core.providers.base import JSONProvider, RequestConfig


logger = logging.getLogger(__name__)


class OpenWeatherProvider(JSONProvider):
    """Fetch current conditions from a fully composed OpenWeather URL.

    The URL must already carry the API key, the coordinates and the
    ``exclude`` filter; see :func:`weather_relay.settings.build_onecall_url`.
    """

    name = "openweather"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(session=session, request_config=RequestConfig(timeout=timeout))
        self.url = url

    def fetch(self) -> dict:
        """Return the raw one-call payload."""
        data = self._get_json(self.url)
        logger.debug("OpenWeather payload received with keys %s", sorted(data))
        return data


__all__ = ["OpenWeatherProvider"]
