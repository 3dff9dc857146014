"""
Per-user rate limiting for the search endpoints.

The in-memory limiter is per process: counters are not shared between
instances and are lost on restart, so the effective limit in a
multi-instance deployment is ``max_requests * instance_count``. A shared
counter store can be plugged in by implementing ``RateLimiterProtocol``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiterProtocol(Protocol):
    """Fixed-window limiter keyed by user id."""

    def allow(self, key: str) -> bool:
        """Consume one request for key; False when the window budget is spent."""
        ...


@dataclass
class RateLimitEntry:
    count: int
    window_reset_at: float


class InMemoryRateLimiter:
    """
    Fixed-window counter held in a process-local dict.

    A window starts on the first request and resets once ``now`` is past
    ``window_reset_at``.
    """

    def __init__(
        self,
        *,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests or settings.rate_limit_max_requests
        self.window_seconds = window_seconds or settings.rate_limit_window_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    def allow(self, key: str) -> bool:
        now = self._clock()
        entry = self._entries.get(key)

        if entry is None or now > entry.window_reset_at:
            self._entries[key] = RateLimitEntry(count=1, window_reset_at=now + self.window_seconds)
            return True

        if entry.count >= self.max_requests:
            logger.warning(
                "rate_limit_exceeded",
                key=key,
                max_requests=self.max_requests,
                retry_after_seconds=round(entry.window_reset_at - now, 1),
            )
            return False

        entry.count += 1
        return True

    def reset(self) -> None:
        self._entries.clear()
