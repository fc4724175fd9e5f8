"""In-memory counters describing how poll cycles ended."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional


@dataclass(frozen=True)
class CycleOutcome:
    published: int = 0
    failed: int = 0
    skipped: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"published": self.published, "failed": self.failed, "skipped": self.skipped}


class CycleStats:
    """Thread-safe tally of cycle results, grouped by failure reason."""

    def __init__(self) -> None:
        self._outcome = CycleOutcome()
        self._errors: Dict[str, int] = {}
        self._last_published: Optional[str] = None
        self._lock = Lock()

    def record_published(self, when: Optional[datetime] = None) -> None:
        when = when or datetime.now(timezone.utc)
        with self._lock:
            self._outcome = CycleOutcome(
                published=self._outcome.published + 1,
                failed=self._outcome.failed,
                skipped=self._outcome.skipped,
            )
            self._last_published = self._format_datetime(when)

    def record_failure(self, reason: str) -> None:
        if not reason:
            raise ValueError("reason must be provided")
        with self._lock:
            self._outcome = CycleOutcome(
                published=self._outcome.published,
                failed=self._outcome.failed + 1,
                skipped=self._outcome.skipped,
            )
            self._errors[reason] = self._errors.get(reason, 0) + 1

    def record_skipped(self) -> None:
        with self._lock:
            self._outcome = CycleOutcome(
                published=self._outcome.published,
                failed=self._outcome.failed,
                skipped=self._outcome.skipped + 1,
            )

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "cycles": self._outcome.as_dict(),
                "errors": dict(self._errors),
                "last_published": self._last_published,
            }

    @staticmethod
    def _format_datetime(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


__all__ = ["CycleOutcome", "CycleStats"]
