"""Core abstractions for the relay pipeline."""
from __future__ import annotations

from typing import Any, Dict, Protocol


class WeatherSource(Protocol):
    """An upstream API returning one raw observation per call."""

    name: str

    def fetch(self) -> Dict[str, Any]:
        """Return the parsed upstream payload."""
        ...


class Publisher(Protocol):
    """A message bus client that can send raw bytes to a topic."""

    def publish(self, topic: str, payload: bytes) -> None:
        """Send ``payload`` once, without waiting for acknowledgement."""
        ...
