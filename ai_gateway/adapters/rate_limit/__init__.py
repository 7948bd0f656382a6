"""Rate limiting adapters.

Admission control for AI endpoints. The in-memory limiter is the only backend;
handlers depend on ``AbstractRateLimiter`` so tests can substitute their own.
"""

from ai_gateway.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitRecord,
    RateLimitResult,
)
from ai_gateway.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitRecord",
    "RateLimitResult",
]
