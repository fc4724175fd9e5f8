"""Fixed-interval scheduler with at most one cycle in flight."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from weather_relay.core.stats import CycleStats
from weather_relay.errors import WeatherRelayError

logger = logging.getLogger(__name__)


class PollScheduler:
    """Dispatch ``cycle`` every ``interval`` seconds until stopped.

    Each cycle runs on a single background worker so a slow fetch never
    delays the timer. When the previous cycle is still running at the next
    tick, that tick is skipped rather than queued.
    """

    def __init__(
        self,
        cycle: Callable[[], Any],
        interval: float = 120.0,
        stats: Optional[CycleStats] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.cycle = cycle
        self.interval = interval
        self.stats = stats or CycleStats()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="weather-cycle")
        self._in_flight: Optional[Future] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def dispatch(self) -> Optional[Future]:
        """Start one cycle unless another is still running."""
        with self._lock:
            if self._stopped.is_set():
                return None
            if self._in_flight is not None and not self._in_flight.done():
                logger.warning("Previous cycle still running, skipping this tick")
                self.stats.record_skipped()
                return None
            try:
                self._in_flight = self._executor.submit(self._run_cycle)
            except RuntimeError:
                # executor shut down by a concurrent close()
                return None
            return self._in_flight

    def run_forever(self) -> None:
        logger.info("Polling every %.0f seconds", self.interval)
        try:
            while not self._stopped.is_set():
                self.dispatch()
                self._stopped.wait(self.interval)
        finally:
            self.close()
        logger.info("Scheduler stopped: %s", self.stats.snapshot()["cycles"])

    def stop(self) -> None:
        """Ask the loop to exit after the current wait; safe from signal handlers."""
        self._stopped.set()

    def close(self, wait: bool = True) -> None:
        self._stopped.set()
        self._executor.shutdown(wait=wait)

    def _run_cycle(self) -> Any:
        try:
            result = self.cycle()
        except WeatherRelayError as exc:
            logger.warning("Cycle skipped: %s", exc)
            self.stats.record_failure(exc.__class__.__name__)
            return None
        except Exception as exc:  # noqa: BLE001 - the loop must outlive a bad cycle
            logger.exception("Unexpected error during cycle")
            self.stats.record_failure(exc.__class__.__name__)
            return None
        self.stats.record_published()
        return result


__all__ = ["PollScheduler"]
