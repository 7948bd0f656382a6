"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: check and sweep share one lock around the store.
- Windows start at each key's first request, not at wall-clock boundaries.
  Adjacent windows can therefore admit up to 2x the quota in a short burst.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from ai_gateway.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitRecord,
    RateLimitResult,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 60_000
DEFAULT_MAX_REQUESTS = 10
CLEANUP_INTERVAL_MS = 5 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per key in a fixed window.

    A key's window opens on its first request and closes ``window_ms`` later.
    Requests beyond ``max_requests`` inside the window are rejected without
    touching the stored count. Expired records are reset lazily on next use
    and removed by a sweep that runs at most once per ``cleanup_interval_ms``.

    Important:
        This limiter is per-process only. Build one instance in the
        composition root and share it between request handlers.
    """

    def __init__(
        self,
        *,
        window_ms: int = DEFAULT_WINDOW_MS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        cleanup_interval_ms: int = CLEANUP_INTERVAL_MS,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            window_ms: Default window length in milliseconds.
            max_requests: Default quota per window.
            cleanup_interval_ms: Minimum time between sweeps of expired records.
            clock: Time source returning UNIX time in milliseconds.

        Raises:
            ValueError: If any of the defaults is not positive.
        """
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if cleanup_interval_ms < 1:
            raise ValueError("cleanup_interval_ms must be >= 1")

        self._window_ms = window_ms
        self._max_requests = max_requests
        self._cleanup_interval_ms = cleanup_interval_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, RateLimitRecord] = {}
        self._last_cleanup = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _sweep_expired(self, now: float) -> None:
        """Drop expired records if the sweep interval has elapsed.

        Must be called with the lock held.
        """
        if now - self._last_cleanup < self._cleanup_interval_ms:
            return

        self._last_cleanup = now
        expired = [key for key, record in self._records.items() if now > record.reset_time]
        for key in expired:
            del self._records[key]

        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(expired), "tracked": len(self._records)},
            )

    def _denied(self, *, now: float, limit: int, reset_time: float) -> RateLimitResult:
        retry_after = max(0, int(math.ceil((reset_time - now) / 1000)))
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=limit,
            reset_at=int(reset_time // 1000),
            retry_after_seconds=retry_after,
        )

    def check(
        self,
        key: str,
        *,
        window_ms: int | None = None,
        max_requests: int | None = None,
    ) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Args:
            key: Client identifier. Not validated; ``""`` is a shared key.
            window_ms: Window override in milliseconds.
            max_requests: Quota override.

        Returns:
            RateLimitResult with the decision and the remaining quota.
        """
        window = self._window_ms if window_ms is None else window_ms
        limit = self._max_requests if max_requests is None else max_requests

        now = self._clock()

        # Misconfigured overrides must never turn into unlimited traffic.
        if window <= 0 or limit <= 0:
            logger.warning(
                "rate_limit.invalid_parameters",
                extra={"window_ms": window, "max_requests": limit},
            )
            return self._denied(now=now, limit=max(limit, 0), reset_time=now)

        with self._lock:
            self._sweep_expired(now)

            record = self._records.get(key)
            if record is None or now > record.reset_time:
                record = RateLimitRecord(count=1, reset_time=now + window)
                self._records[key] = record
                return RateLimitResult(
                    allowed=True,
                    remaining=limit - 1,
                    limit=limit,
                    reset_at=int(record.reset_time // 1000),
                )

            if record.count >= limit:
                return self._denied(now=now, limit=limit, reset_time=record.reset_time)

            record.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=limit - record.count,
                limit=limit,
                reset_at=int(record.reset_time // 1000),
            )
