"""NATS publisher holding the process-wide bus connection.

The nats-py client is asyncio based; the publisher owns a private event loop
running on a daemon thread so the synchronous pipeline (and the scheduler's
worker) can share one connection. Messages are core NATS publishes: one
attempt, no delivery acknowledgement.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlparse

import nats
from nats.errors import Error as NATSError

from weather_relay.errors import WeatherRelayError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4222
SUPPORTED_SCHEMES = ("nats", "tls")


class BusConnectionError(WeatherRelayError):
    """Raised when the bus connection cannot be established."""


class PublishError(WeatherRelayError):
    """Raised when a message cannot be handed to the server."""


@dataclass(frozen=True)
class BusAddress:
    host: str
    port: int = DEFAULT_PORT
    scheme: str = "nats"

    @classmethod
    def parse(cls, server: str) -> "BusAddress":
        """Accept ``host``, ``host:port`` or ``nats://host:port``."""
        if not server:
            raise BusConnectionError("bus server address is empty")
        candidate = server if "://" in server else f"nats://{server}"
        parsed = urlparse(candidate)
        if parsed.scheme not in SUPPORTED_SCHEMES:
            raise BusConnectionError(f"Unsupported bus scheme {parsed.scheme!r} in {server!r}")
        try:
            port = parsed.port or DEFAULT_PORT
        except ValueError as exc:
            raise BusConnectionError(f"Invalid port in bus address {server!r}") from exc
        if not parsed.hostname:
            raise BusConnectionError(f"Bus address {server!r} has no host")
        return cls(host=parsed.hostname, port=port, scheme=parsed.scheme)

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


Connector = Callable[..., Awaitable[Any]]


class BusPublisher:
    """Publishes raw bytes to subjects over a single persistent connection."""

    def __init__(
        self,
        server: str,
        *,
        name: str = "weather-relay",
        connect_timeout: float = 10.0,
        publish_timeout: float = 5.0,
        connector: Optional[Connector] = None,
    ) -> None:
        self.address = BusAddress.parse(server)
        self.name = name
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout
        self._connector = connector or nats.connect
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._nc: Any = None

    @property
    def connected(self) -> bool:
        return self._nc is not None

    # -- NATS callbacks -------------------------------------------------
    async def _on_error(self, exc: Exception) -> None:
        logger.error("Bus error: %s", exc)

    async def _on_disconnected(self) -> None:
        logger.warning("Disconnected from bus at %s", self.address.url)

    async def _on_reconnected(self) -> None:
        logger.info("Reconnected to bus at %s", self.address.url)

    # -- Public API -----------------------------------------------------
    def connect(self) -> None:
        """Open the connection; returns only once the server accepted the session."""
        if self._nc is not None:
            return
        self._start_loop()
        try:
            self._nc = self._call(
                self._connector(
                    servers=[self.address.url],
                    name=self.name,
                    connect_timeout=self.connect_timeout,
                    error_cb=self._on_error,
                    disconnected_cb=self._on_disconnected,
                    reconnected_cb=self._on_reconnected,
                ),
                self.connect_timeout,
            )
        except concurrent.futures.TimeoutError as exc:
            self._stop_loop()
            raise BusConnectionError(
                f"Bus at {self.address.url} did not accept the session within {self.connect_timeout:.0f}s"
            ) from exc
        except (OSError, NATSError, asyncio.TimeoutError) as exc:
            self._stop_loop()
            raise BusConnectionError(f"Could not connect to bus at {self.address.url}: {exc}") from exc
        logger.info("Connected to bus at %s", self.address.url)

    def publish(self, topic: str, payload: bytes) -> None:
        """Send ``payload`` once and flush it to the server."""
        if self._nc is None:
            raise PublishError(f"publish to {topic} failed: not connected")
        try:
            self._call(self._publish(topic, payload), self.publish_timeout)
        except concurrent.futures.TimeoutError as exc:
            raise PublishError(f"publish to {topic} timed out") from exc
        except (OSError, NATSError, asyncio.TimeoutError) as exc:
            raise PublishError(f"publish to {topic} failed: {exc}") from exc
        logger.info("Published %d bytes to %s", len(payload), topic)

    def close(self) -> None:
        if self._nc is None:
            self._stop_loop()
            return
        nc, self._nc = self._nc, None
        logger.info("Closing bus connection")
        try:
            self._call(nc.close(), self.publish_timeout)
        except (concurrent.futures.TimeoutError, OSError, NATSError) as exc:
            logger.warning("Bus connection did not close cleanly: %s", exc)
        finally:
            self._stop_loop()

    def __enter__(self) -> "BusPublisher":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- Event loop plumbing ----------------------------------------------
    async def _publish(self, topic: str, payload: bytes) -> None:
        await self._nc.publish(topic, payload)
        await self._nc.flush(timeout=self.publish_timeout)

    def _call(self, coro: Awaitable[Any], timeout: float) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise

    def _start_loop(self) -> None:
        if self._loop is not None:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="weather-bus", daemon=True)
        self._thread.start()

    def _stop_loop(self) -> None:
        if self._loop is None:
            return
        loop, thread = self._loop, self._thread
        self._loop = self._thread = None
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=5)
        if not thread.is_alive():
            loop.close()


__all__ = ["BusAddress", "BusConnectionError", "BusPublisher", "PublishError"]
