"""CloudEvents-style envelope wrapped around every published record."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from weather_relay.core.schemas import NormalizedWeather

logger = logging.getLogger(__name__)

SPEC_VERSION = "1.0"
EVENT_SOURCE = "com.wellorder.iot.weather"
EVENT_TYPE = "https://openweathermap.org/"
JSON_CONTENT_TYPE = "application/json"


class Envelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    specversion: str = SPEC_VERSION
    id: str = Field(default_factory=lambda: str(uuid4()))
    source: str = EVENT_SOURCE
    type: str = EVENT_TYPE
    datacontenttype: str = JSON_CONTENT_TYPE
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Dict[str, Any]

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


def wrap(data: bytes | NormalizedWeather) -> Envelope:
    """Wrap a serialized (or in-memory) weather record in a fresh envelope."""

    if isinstance(data, NormalizedWeather):
        body = data.to_dict()
    else:
        body = json.loads(data)
    envelope = Envelope(data=body)
    logger.debug("Envelope %s data: %s", envelope.id, body)
    return envelope


__all__ = ["EVENT_SOURCE", "EVENT_TYPE", "Envelope", "JSON_CONTENT_TYPE", "wrap"]
