"""Rate limiter interfaces.

Request handlers depend on this abstraction rather than the in-memory
implementation, so the limiter can be replaced in tests or composition roots.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateLimitRecord:
    """Per-client counter for the current fixed window.

    Attributes:
        count: Requests admitted in the current window.
        reset_time: Epoch milliseconds at which the window ends. Set once when
            the window starts and never extended by later traffic.
    """

    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitResult:
    """Result of an admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        remaining: Remaining requests in the current window (0 when blocked).
        limit: Max requests per window used for this decision.
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    remaining: int
    limit: int
    reset_at: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for admission control keyed by client identifier."""

    @abstractmethod
    def check(
        self,
        key: str,
        *,
        window_ms: int | None = None,
        max_requests: int | None = None,
    ) -> RateLimitResult:
        """Check and record one request for ``key``.

        Args:
            key: Stable client identifier (e.g., source IP). Empty string is a
                valid, shared key.
            window_ms: Window length override in milliseconds.
            max_requests: Per-window quota override.

        Returns:
            RateLimitResult describing whether the request was admitted.
        """
        raise NotImplementedError
