"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Explicit ownership: the limiter is built once by the app factory and kept
  on ``app.state``; handlers only borrow it.
- Safe defaults: enabled unless explicitly disabled via settings.

Rate limiting strategy:
- Fixed-window limit per client IP, shared by all AI routes.
- Each route passes its own quota to the limiter.
- The first ``X-Forwarded-For`` hop wins, then the socket peer, then
  ``"unknown"`` (a single shared bucket).
"""

from __future__ import annotations

import hashlib
import logging
from typing import Callable

from fastapi import Request

from ai_gateway.adapters.rate_limit.base import AbstractRateLimiter
from ai_gateway.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from ai_gateway.core.config import AppSettings, settings
from ai_gateway.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait a moment."


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the process-wide limiter from configuration.

    Args:
        app_settings: Settings to use; defaults to the global settings.

    Returns:
        AbstractRateLimiter: A fresh in-memory limiter.
    """

    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        window_ms=cfg.rate_limit_window_ms,
        max_requests=cfg.rate_limit_requests,
        cleanup_interval_ms=cfg.rate_limit_cleanup_interval_ms,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def client_key_from_request(request: Request) -> str:
    """Derive the rate limit key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Client IP-like identifier.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit(
    max_requests: int | None = None,
    window_ms: int | None = None,
) -> Callable[[Request], None]:
    """Build a FastAPI dependency enforcing a per-route quota.

    All routes share the caller's key, so one budget covers every AI feature;
    each route only decides how much of it may be used within the window.

    Args:
        max_requests: Requests allowed per window; the limiter default if None.
        window_ms: Window length in milliseconds; the limiter default if None.

    Returns:
        Callable: Dependency recording one request against the caller's window.
    """

    def enforce_rate_limit(request: Request) -> None:
        """Record one request for the caller; raise 429 when over quota.

        Raises:
            RateLimitAppError: 429 Too Many Requests when the quota is exhausted.
        """

        if not settings.app.rate_limit_enabled:
            return

        limiter = get_rate_limiter(request)
        key = client_key_from_request(request)
        key_hash = _hash_limiter_key(key)

        result = limiter.check(key, window_ms=window_ms, max_requests=max_requests)
        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "retry_after_s": retry_after,
                "request_path": request.url.path,
            },
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)
            headers["X-RateLimit-Reset"] = str(result.reset_at)

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=RATE_LIMIT_MESSAGE,
            headers=headers,
        )

    return enforce_rate_limit
