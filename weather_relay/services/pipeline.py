"""One poll cycle: fetch, transform, envelope and publish."""
from __future__ import annotations

import logging

from weather_relay.core.abstractions import Publisher, WeatherSource
from weather_relay.core.envelope import Envelope, wrap
from weather_relay.core.transform import serialize, transform
from weather_relay.settings import Settings


logger = logging.getLogger(__name__)


class WeatherPipeline:
    """Turn one upstream observation into one published envelope."""

    def __init__(self, settings: Settings, source: WeatherSource, publisher: Publisher) -> None:
        self.settings = settings
        self.source = source
        self.publisher = publisher

    def run_cycle(self) -> Envelope:
        payload = self.source.fetch()
        weather = transform(payload, self.settings.zip_code, self.settings.temperature_unit)
        envelope = wrap(serialize(weather))
        self.publisher.publish(self.settings.nats_topic, envelope.to_bytes())
        logger.info("Published envelope %s to %s", envelope.id, self.settings.nats_topic)
        return envelope

    __call__ = run_cycle
