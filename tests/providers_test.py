from __future__ import annotations

import pytest
import requests

from weather_relay.core.providers.base import ProviderError
from weather_relay.core.providers.openweather import OpenWeatherProvider


def test_fetch_returns_parsed_payload(requests_mock, upstream_url, onecall_payload):
    requests_mock.get(upstream_url, json=onecall_payload)
    provider = OpenWeatherProvider(upstream_url)

    data = provider.fetch()

    assert data["lat"] == 42.1
    assert data["current"]["humidity"] == 74
    assert requests_mock.call_count == 1
    assert requests_mock.last_request.qs["appid"] == ["test"]


def test_fetch_applies_timeout(requests_mock, upstream_url, onecall_payload):
    requests_mock.get(upstream_url, json=onecall_payload)
    provider = OpenWeatherProvider(upstream_url, timeout=3.5)

    provider.fetch()

    assert requests_mock.last_request.timeout == 3.5


def test_fetch_raises_on_server_error(requests_mock, upstream_url):
    requests_mock.get(upstream_url, status_code=500, text="server error")
    provider = OpenWeatherProvider(upstream_url)

    with pytest.raises(ProviderError, match="HTTP 500"):
        provider.fetch()


def test_fetch_raises_on_invalid_json(requests_mock, upstream_url):
    requests_mock.get(upstream_url, text="<html>maintenance</html>")
    provider = OpenWeatherProvider(upstream_url)

    with pytest.raises(ProviderError, match="not valid JSON"):
        provider.fetch()


def test_fetch_rejects_non_object_body(requests_mock, upstream_url):
    requests_mock.get(upstream_url, json=[1, 2, 3])
    provider = OpenWeatherProvider(upstream_url)

    with pytest.raises(ProviderError):
        provider.fetch()


def test_fetch_wraps_connection_errors(requests_mock, upstream_url):
    requests_mock.get(upstream_url, exc=requests.ConnectionError("dns failure"))
    provider = OpenWeatherProvider(upstream_url)

    with pytest.raises(ProviderError, match="request failed"):
        provider.fetch()


def test_fetch_wraps_timeouts(requests_mock, upstream_url):
    requests_mock.get(upstream_url, exc=requests.ReadTimeout("too slow"))
    provider = OpenWeatherProvider(upstream_url)

    with pytest.raises(ProviderError, match="timeout"):
        provider.fetch()
