from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests
from requests import Response

from weather_relay.errors import WeatherRelayError


class ProviderError(WeatherRelayError):
    """Raised when the upstream API cannot deliver a usable payload."""


@dataclass(frozen=True)
class RequestConfig:
    timeout: float = 10.0


class JSONProvider:
    """Base class for blocking HTTP providers returning JSON objects."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)

    def _handle_response(self, response: Response) -> Response:
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise ProviderError(f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs: Any) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise ProviderError("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderError("request failed") from exc
        return self._handle_response(response)

    def _get_json(self, url: str, **kwargs: Any) -> dict:
        response = self._request("GET", url, **kwargs)
        self._log.debug("Response body: %s", response.text[:500])
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("response body is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError("response body must be a JSON object")
        return data

    def close(self) -> None:
        self.session.close()


__all__ = ["JSONProvider", "ProviderError", "RequestConfig"]
