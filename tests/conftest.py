from __future__ import annotations

import asyncio
import pathlib
import sys
from typing import Any, Dict, List, Tuple

import pytest
from requests_mock import Mocker

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from weather_relay.settings import Settings  # noqa: E402

UPSTREAM_URL = "https://openweather.test/data/2.5/onecall?exclude=minutely,hourly,daily,alerts&lat=42.1&lon=-71.2&APPID=test"


@pytest.fixture
def requests_mock():
    with Mocker() as mock:
        yield mock


class FakeNATSClient:
    """Records calls instead of talking to a server."""

    def __init__(self, publish_error: Exception | None = None) -> None:
        self.publish_error = publish_error
        self.published: List[Tuple[str, bytes]] = []
        self.flushes = 0
        self.closed = False

    async def publish(self, subject: str, payload: bytes) -> None:
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((subject, payload))

    async def flush(self, timeout: float = 2.0) -> None:
        self.flushes += 1

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Stands in for ``nats.connect``; can fail or never answer."""

    def __init__(
        self,
        client: FakeNATSClient | None = None,
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.client = client or FakeNATSClient()
        self.error = error
        self.hang = hang
        self.options: Dict[str, Any] = {}

    async def __call__(self, **options: Any) -> FakeNATSClient:
        self.options = options
        if self.hang:
            await asyncio.sleep(3600)
        if self.error is not None:
            raise self.error
        return self.client


class RecordingPublisher:
    def __init__(self) -> None:
        self.messages: List[Tuple[str, bytes]] = []

    def publish(self, topic: str, payload: bytes) -> None:
        self.messages.append((topic, payload))


@pytest.fixture
def fake_client() -> FakeNATSClient:
    return FakeNATSClient()


@pytest.fixture
def recording_publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openweather_url=UPSTREAM_URL,
        nats_server="nats://localhost:4222",
        zip_code="01001",
    )


@pytest.fixture
def onecall_payload() -> Dict[str, Any]:
    return {
        "lat": 42.1,
        "lon": -71.2,
        "timezone": "America/New_York",
        "current": {
            "dt": 1609459200,
            "sunrise": 1609416000,
            "sunset": 1609450000,
            "temp": 275.85,
            "feels_like": 271.3,
            "pressure": 1021,
            "humidity": 74,
            "dew_point": 271.77,
            "uvi": 0,
            "clouds": 40,
            "visibility": 10000,
            "wind_speed": 3.6,
            "wind_deg": 250,
            "weather": [
                {"id": 802, "main": "Clouds", "description": "scattered clouds", "icon": "03n"},
                {"id": 500, "main": "Rain", "description": "light rain", "icon": "10n"},
            ],
            "rain": {"1h": 0.25, "3h": 0.9},
        },
    }


@pytest.fixture
def connector_factory():
    return FakeConnector


@pytest.fixture
def upstream_url() -> str:
    return UPSTREAM_URL
