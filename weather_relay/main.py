"""Process entry point: load settings, connect the bus and poll forever."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from weather_relay.bus.publisher import BusConnectionError, BusPublisher
from weather_relay.core.providers.openweather import OpenWeatherProvider
from weather_relay.errors import ImproperlyConfigured, WeatherRelayError
from weather_relay.scheduler import PollScheduler
from weather_relay.services.pipeline import WeatherPipeline
from weather_relay.settings import load_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weather-relay",
        description="Poll OpenWeather current conditions and publish them on a message bus",
    )
    parser.add_argument("--config", help="YAML configuration file (defaults to the environment)")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    return parser


def _install_signal_handlers(scheduler: PollScheduler) -> None:
    def _handle_signal(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        scheduler.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    try:
        settings = load_settings(args.config)
    except ImproperlyConfigured as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", exc)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    provider = OpenWeatherProvider(settings.openweather_url, timeout=settings.http_timeout)
    try:
        publisher = BusPublisher(settings.nats_server)
        publisher.connect()
    except BusConnectionError as exc:
        logger.error("Could not instantiate bus client: %s", exc)
        provider.close()
        return 1

    pipeline = WeatherPipeline(settings, provider, publisher)
    try:
        if args.once:
            try:
                pipeline.run_cycle()
            except WeatherRelayError as exc:
                logger.error("Cycle failed: %s", exc)
                return 1
            return 0
        scheduler = PollScheduler(pipeline.run_cycle, interval=settings.poll_interval)
        _install_signal_handlers(scheduler)
        scheduler.run_forever()
        return 0
    finally:
        publisher.close()
        provider.close()


if __name__ == "__main__":
    sys.exit(main())
